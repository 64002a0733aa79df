import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from ..core.config import settings
from ..core.errors import AuthError, CinemaLogError, UpstreamError, ValidationError
from ..core.firebase import get_firebase_app
from ..core.store import StoreClient
from ..users.service import upsert_profile
from .models import AuthSession, Identity

logger = logging.getLogger(__name__)

class AuthService:
    """Firebase Authentication: Admin SDK for session cookies and accounts,
    Identity Toolkit REST API for password and identity-provider sign-in."""

    def __init__(self, firebase_app=None, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self._firebase_app = firebase_app
        self.transport = transport
        self.timeout = timeout

    @property
    def firebase_app(self):
        if self._firebase_app is None:
            self._firebase_app = get_firebase_app()
        return self._firebase_app

    async def _post(self, url: str, *, json: Optional[Dict] = None, data: Optional[Dict] = None,
                    params: Optional[Dict] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(url, json=json, data=data, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Auth request to {url} failed: {str(e)}")
            raise UpstreamError(f"Authentication service unavailable: {str(e)}") from e

        if response.status_code >= 500:
            logger.error(f"Auth request to {url} returned {response.status_code}")
            raise UpstreamError(f"Authentication service returned {response.status_code}")
        if response.status_code != 200:
            raise AuthError(self._error_message(response))
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error")
        except ValueError:
            return "Authentication failed"
        # Identity Toolkit nests the message, OAuth token endpoints do not
        if isinstance(error, dict):
            return error.get("message", "Authentication failed")
        if isinstance(error, str):
            return error
        return "Authentication failed"

    def _identity_toolkit(self, method: str) -> str:
        return f"{settings.IDENTITY_TOOLKIT_URL}/accounts:{method}"

    @staticmethod
    def _session_from(payload: Dict[str, Any]) -> AuthSession:
        return AuthSession(
            identity=Identity(
                user_id=payload["localId"],
                email=payload.get("email", ""),
                display_name=payload.get("displayName") or None,
                avatar_url=payload.get("photoUrl") or None,
            ),
            id_token=payload["idToken"],
            refresh_token=payload.get("refreshToken"),
            expires_in=int(payload.get("expiresIn", 3600)),
        )

    async def sign_in_with_password(self, store: StoreClient, email: str, password: str) -> AuthSession:
        payload = await self._post(
            self._identity_toolkit("signInWithPassword"),
            params={"key": settings.FIREBASE_API_KEY},
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info(f"User {payload['localId']} signed in with password")
        session = self._session_from(payload)
        # Idempotent, so a profile missed at sign-up is written now
        await self._save_profile(store, session.identity)
        return session

    async def sign_up(self, store: StoreClient, email: str, password: str,
                      display_name: Optional[str] = None) -> AuthSession:
        try:
            auth.create_user(email=email, password=password, display_name=display_name, app=self.firebase_app)
        except auth.EmailAlreadyExistsError as e:
            raise ValidationError("Email is already registered") from e
        except ValueError as e:
            raise ValidationError(str(e)) from e
        except FirebaseError as e:
            logger.error(f"Failed to create user {email}: {str(e)}")
            raise UpstreamError(f"Failed to create user: {str(e)}") from e

        return await self.sign_in_with_password(store, email, password)

    async def exchange_code_for_session(self, store: StoreClient, code: str) -> AuthSession:
        """Trade an OAuth authorization code for a Firebase session and record the user"""
        tokens = await self._post(settings.OAUTH_TOKEN_URL, data={
            "code": code,
            "client_id": settings.OAUTH_CLIENT_ID,
            "client_secret": settings.OAUTH_CLIENT_SECRET,
            "redirect_uri": settings.OAUTH_REDIRECT_URI,
            "grant_type": "authorization_code",
        })
        if "id_token" in tokens:
            post_body = urlencode({"id_token": tokens["id_token"], "providerId": settings.OAUTH_PROVIDER_ID})
        elif "access_token" in tokens:
            post_body = urlencode({"access_token": tokens["access_token"], "providerId": settings.OAUTH_PROVIDER_ID})
        else:
            raise AuthError("Identity provider returned no token")

        payload = await self._post(
            self._identity_toolkit("signInWithIdp"),
            params={"key": settings.FIREBASE_API_KEY},
            json={
                "postBody": post_body,
                "requestUri": settings.OAUTH_REDIRECT_URI,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        session = self._session_from(payload)
        logger.info(f"User {session.identity.user_id} signed in with {settings.OAUTH_PROVIDER_ID}")
        await self._save_profile(store, session.identity)
        return session

    async def _save_profile(self, store: StoreClient, identity: Identity):
        # The sign-in already succeeded; a missing profile row is recoverable
        try:
            await upsert_profile(store, identity)
        except CinemaLogError as e:
            logger.error(f"Error creating user profile for {identity.user_id}: {e.detail}")

    def create_session_cookie(self, session: AuthSession) -> str:
        try:
            return auth.create_session_cookie(
                session.id_token,
                expires_in=timedelta(days=settings.SESSION_MAX_AGE_DAYS),
                app=self.firebase_app,
            )
        except auth.InvalidIdTokenError as e:
            raise AuthError("Invalid ID token") from e
        except FirebaseError as e:
            logger.error(f"Failed to create session cookie: {str(e)}")
            raise UpstreamError(f"Failed to create session: {str(e)}") from e

    async def get_current_user(self, session_cookie: Optional[str]) -> Optional[Identity]:
        if not session_cookie:
            return None
        try:
            claims = auth.verify_session_cookie(session_cookie, check_revoked=True, app=self.firebase_app)
        except (auth.InvalidSessionCookieError, auth.UserDisabledError):
            return None
        except FirebaseError as e:
            logger.error(f"Failed to verify session cookie: {str(e)}")
            raise UpstreamError(f"Failed to verify session: {str(e)}") from e

        return Identity(
            user_id=claims["uid"],
            email=claims.get("email", ""),
            display_name=claims.get("name"),
            avatar_url=claims.get("picture"),
        )

    async def sign_out(self, session_cookie: Optional[str]):
        identity = await self.get_current_user(session_cookie)
        if identity is None:
            return
        try:
            auth.revoke_refresh_tokens(identity.user_id, app=self.firebase_app)
        except FirebaseError as e:
            logger.error(f"Failed to revoke tokens for {identity.user_id}: {str(e)}")
            raise UpstreamError(f"Error logging out: {str(e)}") from e
        logger.info(f"User {identity.user_id} signed out")
