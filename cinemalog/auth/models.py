from pydantic import BaseModel, Field
from typing import Optional

class Identity(BaseModel):
    """The authenticated caller, passed explicitly into every operation"""
    user_id: str
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

class SignUpRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    display_name: Optional[str] = None

class SignInRequest(BaseModel):
    email: str
    password: str

class AuthSession(BaseModel):
    identity: Identity
    id_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 3600
