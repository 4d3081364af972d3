import logging

import firebase_admin
from firebase_admin import credentials

from .config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)


def get_firebase_app() -> firebase_admin.App:
    """Return the default Firebase Admin app, initializing it once"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": FIREBASE_PROJECT_ID}
    try:
        if FIREBASE_CREDENTIALS_PATH:
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            logger.info("Firebase Admin initialized with service account file")
        else:
            cred = credentials.ApplicationDefault()
            logger.info("Firebase Admin initialized with default credentials")
        return firebase_admin.initialize_app(cred, options)
    except (ValueError, OSError) as e:
        # Initialize without credentials (token verification still works)
        logger.warning(f"⚠️ Firebase credentials unavailable ({e}); using project ID only")
        return firebase_admin.initialize_app(options=options)
