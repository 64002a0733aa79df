from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from ..auth.models import Identity
from ..core.store import StoreClient, eq, in_
from .models import UserProfile

async def upsert_profile(store: StoreClient, identity: Identity) -> UserProfile:
    """Create or refresh the users row keyed by the auth subject"""
    now = datetime.now(timezone.utc)
    existing = store.select('users', [eq('id', identity.user_id)], limit=1)

    profile_data = {
        'id': identity.user_id,
        'email': identity.email,
        'created_at': existing[0].get('created_at', now) if existing else now,
        'updated_at': now,
    }
    # Missing provider metadata must not wipe what the user already has
    if identity.display_name is not None:
        profile_data['display_name'] = identity.display_name
    if identity.avatar_url is not None:
        profile_data['avatar_url'] = identity.avatar_url

    return UserProfile(**store.upsert('users', profile_data))

async def get_profile(store: StoreClient, user_id: str) -> Optional[UserProfile]:
    rows = store.select('users', [eq('id', user_id)], limit=1)
    return UserProfile(**rows[0]) if rows else None

async def get_profiles(store: StoreClient, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
    ids = sorted(set(user_ids))
    if not ids:
        return {}
    return {row['id']: UserProfile(**row) for row in store.select('users', [in_('id', ids)])}
