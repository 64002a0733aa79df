from fastapi import HTTPException


class CinemaLogError(HTTPException):
    """Base for errors raised by CinemaLog services; rendered by FastAPI as {"detail": ...}"""
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(CinemaLogError):
    status_code = 400


class AuthError(CinemaLogError):
    status_code = 401


class NotFoundError(CinemaLogError):
    # Also raised when the row exists but belongs to someone else.
    status_code = 404


class UpstreamError(CinemaLogError):
    """Firestore or Firebase Auth failed or timed out"""
    status_code = 502
