import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from ..core.config import settings
from ..core.dependencies import get_auth_service, get_store
from ..core.errors import CinemaLogError
from ..core.store import StoreClient
from .models import AuthSession, SignInRequest, SignUpRequest
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

def _set_session_cookie(response: Response, auth_service: AuthService, session: AuthSession):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=auth_service.create_session_cookie(session),
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SITE_URL.startswith("https"),
        samesite="lax",
    )

@router.post("/signup", status_code=201)
async def sign_up(
    request: SignUpRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    store: StoreClient = Depends(get_store),
):
    session = await auth_service.sign_up(store, request.email, request.password, request.display_name)
    _set_session_cookie(response, auth_service, session)
    return {"user": session.identity}

@router.post("/login")
async def sign_in(
    request: SignInRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    store: StoreClient = Depends(get_store),
):
    session = await auth_service.sign_in_with_password(store, request.email, request.password)
    _set_session_cookie(response, auth_service, session)
    return {"user": session.identity}

@router.post("/logout")
async def sign_out(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.sign_out(request.cookies.get(settings.SESSION_COOKIE_NAME))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}

@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
    store: StoreClient = Depends(get_store),
):
    """OAuth redirect target; always ends on the dashboard"""
    response = RedirectResponse(url="/dashboard", status_code=303)
    if code:
        try:
            session = await auth_service.exchange_code_for_session(store, code)
            _set_session_cookie(response, auth_service, session)
        except CinemaLogError as e:
            logger.warning(f"OAuth callback could not establish a session: {e.detail}")
    return response
