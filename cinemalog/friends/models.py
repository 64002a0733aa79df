from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class Friendship(BaseModel):
    id: int
    requester_id: str
    requested_id: str
    status: FriendshipStatus = FriendshipStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
