import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

APP_NAME = "CareNow"

# Booking slots and quiet hours are wall-clock times in this zone
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Ho_Chi_Minh")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carenow.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
# Web API key for the Identity Toolkit REST endpoints (password / phone sign-in)
FIREBASE_WEB_API_KEY = os.getenv("FIREBASE_WEB_API_KEY")
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")
IDENTITY_TOOLKIT_URL = os.getenv(
    "IDENTITY_TOOLKIT_URL", "https://identitytoolkit.googleapis.com/v1"
)
SECURE_TOKEN_URL = os.getenv("SECURE_TOKEN_URL", "https://securetoken.googleapis.com/v1")

# Cloudflare R2 Configuration (profile avatars)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "carenow")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Marketplace economics
PLATFORM_FEE_RATE = float(os.getenv("PLATFORM_FEE_RATE", "0.15"))
URGENT_FEE_MULTIPLIER = float(os.getenv("URGENT_FEE_MULTIPLIER", "1.2"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "VND")

# Listing defaults
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
DEFAULT_SEARCH_RADIUS_KM = float(os.getenv("DEFAULT_SEARCH_RADIUS_KM", "50"))

# Ho Chi Minh City centre, used when a client has no location yet
DEFAULT_LATITUDE = 10.8231
DEFAULT_LONGITUDE = 106.6297

# Service catalog cache TTL in seconds
SERVICES_CACHE_TTL = int(os.getenv("SERVICES_CACHE_TTL", "3600"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
