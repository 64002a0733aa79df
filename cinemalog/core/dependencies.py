from fastapi import Depends, Request

from ..auth.models import Identity
from ..auth.service import AuthService
from .config import settings
from .errors import AuthError
from .firebase import get_firestore
from .store import FirestoreStore, StoreClient

def get_store() -> StoreClient:
    return FirestoreStore(get_firestore())

def get_auth_service() -> AuthService:
    return AuthService()

async def get_identity(request: Request, auth_service: AuthService = Depends(get_auth_service)) -> Identity:
    """The caller behind the session cookie; 401 without a valid one"""
    identity = await auth_service.get_current_user(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if identity is None:
        raise AuthError("Not authenticated")
    return identity
