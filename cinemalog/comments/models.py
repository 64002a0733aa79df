from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from ..users.models import UserProfile

MAX_COMMENT_LENGTH = 1000

class Comment(BaseModel):
    id: int
    record_id: int
    user_id: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserProfile] = None

class CommentInput(BaseModel):
    # Length is checked after trimming by the service
    content: str
