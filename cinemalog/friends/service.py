from typing import Optional

from ..core.store import StoreClient, any_of, eq
from ..records.models import Record
from .models import Friendship, FriendshipStatus

async def get_friendship(store: StoreClient, user_id: str, other_id: str) -> Optional[Friendship]:
    """The accepted friendship between two users, whoever asked whom"""
    rows = store.select('friends', [
        eq('status', FriendshipStatus.ACCEPTED.value),
        any_of(
            [eq('requester_id', user_id), eq('requested_id', other_id)],
            [eq('requester_id', other_id), eq('requested_id', user_id)],
        ),
    ], limit=1)
    return Friendship(**rows[0]) if rows else None

async def are_friends(store: StoreClient, user_id: str, other_id: str) -> bool:
    # Store failures propagate as UpstreamError; the caller picks the default
    return await get_friendship(store, user_id, other_id) is not None

async def can_view(store: StoreClient, viewer_id: str, record: Record) -> bool:
    if viewer_id == record.user_id:
        return True
    return await are_friends(store, viewer_id, record.user_id)
