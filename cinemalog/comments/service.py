import logging
from datetime import datetime, timezone
from typing import List

from ..auth.models import Identity
from ..core.errors import ValidationError
from ..core.store import StoreClient, eq
from ..users.service import get_profiles
from .models import MAX_COMMENT_LENGTH, Comment

logger = logging.getLogger(__name__)

async def list_comments(store: StoreClient, record_id: int) -> List[Comment]:
    """Comments on a record, oldest first, with their authors attached"""
    rows = store.select('comments', [eq('record_id', record_id)], order_by='created_at')
    authors = await get_profiles(store, [row['user_id'] for row in rows])
    return [Comment(**row, author=authors.get(row['user_id'])) for row in rows]

async def add_comment(store: StoreClient, record_id: int, author: Identity, content: str) -> Comment:
    """Append a comment. The caller must already have read access to the record."""
    content = (content or '').strip()
    if not content:
        raise ValidationError("Comment must not be empty")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")

    now = datetime.now(timezone.utc)
    row = store.insert('comments', {
        'record_id': record_id,
        'user_id': author.user_id,
        'content': content,
        'created_at': now,
        'updated_at': now,
    })
    logger.info(f"User {author.user_id} commented on record {record_id}")

    authors = await get_profiles(store, [author.user_id])
    return Comment(**row, author=authors.get(author.user_id))
