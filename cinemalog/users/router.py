from fastapi import APIRouter, Depends

from ..auth.models import Identity
from ..core.dependencies import get_identity, get_store
from ..core.errors import NotFoundError
from ..core.store import StoreClient
from .service import get_profile

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me")
async def read_my_profile(
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    profile = await get_profile(store, identity.user_id)
    if profile is None:
        raise NotFoundError("User profile not found")
    return profile
