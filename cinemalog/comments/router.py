from fastapi import APIRouter, Depends

from ..auth.models import Identity
from ..core.dependencies import get_identity, get_store
from ..core.store import StoreClient
from ..records.service import get_visible_record
from .models import CommentInput
from .service import add_comment, list_comments

router = APIRouter(prefix="/records/{record_id}/comments", tags=["comments"])

@router.get("")
async def get_comments(
    record_id: int,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    record = await get_visible_record(store, identity, record_id)
    return {"comments": await list_comments(store, record.id)}

@router.post("", status_code=201)
async def post_comment(
    record_id: int,
    comment: CommentInput,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """Post a comment on a record the caller can see"""
    record = await get_visible_record(store, identity, record_id)
    return await add_comment(store, record.id, identity, comment.content)
