import logging
import firebase_admin
from firebase_admin import credentials, firestore
from .config import settings

logger = logging.getLogger(__name__)

def get_firebase_app() -> firebase_admin.App:
    """Initialise the default Firebase app on first use"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        logger.info(f"Initialising Firebase app from {settings.FIREBASE_CREDS_PATH_ABSOLUTE}")
        cred = credentials.Certificate(str(settings.FIREBASE_CREDS_PATH_ABSOLUTE))
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        return firebase_admin.initialize_app(cred, options)

def get_firestore():
    return firestore.client(get_firebase_app())
