import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cache import cache
from .config import APP_NAME, CORS_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.admin.router import router as admin_router
from .domain.auth.router import router as auth_router
from .domain.bookings.router import router as bookings_router
from .domain.catalog.repository import SqlAlchemyServiceRepository
from .domain.catalog.router import router as catalog_router
from .domain.catalog.usecases import SeedServiceCatalog
from .domain.clients.router import router as clients_router
from .domain.notifications.router import router as notifications_router
from .domain.partners.router import router as partners_router
from .domain.profiles.router import router as profiles_router
from .shared.failures import CacheFailure, Failure

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def seed_catalog() -> int:
    db = SessionLocal()
    try:
        return SeedServiceCatalog(SqlAlchemyServiceRepository(db, cache))().unwrap()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting {APP_NAME} API")
    Base.metadata.create_all(bind=engine)
    seed_catalog()

    try:
        cache.ping()
        logger.info("✅ Redis connection verified")
    except CacheFailure as e:
        logger.warning(f"⚠️ Redis not available, caching disabled: {e.message}")

    yield
    logger.info(f"👋 Shutting down {APP_NAME} API")


app = FastAPI(title=f"{APP_NAME} API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(Failure)
async def failure_handler(request: Request, exc: Failure):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A missing Authorization header is an auth problem, not a bad payload"""
    for error in exc.errors():
        loc = error.get("loc", ())
        if "authorization" in [str(part).lower() for part in loc]:
            return JSONResponse(
                status_code=401,
                content={"detail": "Authentication required", "category": "auth"},
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

for router in (
    auth_router,
    profiles_router,
    catalog_router,
    partners_router,
    bookings_router,
    clients_router,
    notifications_router,
    admin_router,
):
    app.include_router(router, prefix=API_PREFIX)


@app.get("/")
def root():
    return {"message": f"{APP_NAME} API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    try:
        cache.ping()
    except CacheFailure as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": e.message}}
    return {"status": "healthy", "redis": {"connected": True}}
