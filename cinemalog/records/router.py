from typing import Optional
from fastapi import APIRouter, Depends, Query, Response

from ..auth.models import Identity
from ..catalog.service import list_movies, list_places
from ..core.config import settings
from ..core.dependencies import get_identity, get_store
from ..core.store import StoreClient
from .models import RecordFilter, RecordInput
from .service import (
    create_record, delete_record, get_dashboard, get_owned_record, get_record_detail,
    get_visible_record, list_records, share_link, update_record,
)

router = APIRouter(prefix="/records", tags=["records"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@dashboard_router.get("")
async def read_dashboard(
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """Most recent records plus overall stats for the caller"""
    return await get_dashboard(store, identity.user_id)

@router.get("")
async def get_records(
    year: Optional[int] = Query(None, ge=1, le=9999),
    search: Optional[str] = None,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """
    The caller's records, newest first
    year narrows to one calendar year, search matches title, director or memo
    """
    return await list_records(store, identity.user_id, RecordFilter(year=year, search=search))

@router.post("", status_code=201)
async def create_new_record(
    record: RecordInput,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    return await create_record(store, identity.user_id, record)

@router.get("/{record_id}")
async def get_record_page(
    record_id: int,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    return await get_record_detail(store, identity, record_id)

@router.get("/{record_id}/edit")
async def get_record_form(
    record_id: int,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """Everything the edit form needs; only the owner gets past the lookup"""
    record = await get_owned_record(store, identity.user_id, record_id)
    return {
        "record": record,
        "movies": await list_movies(store),
        "places": await list_places(store),
    }

@router.put("/{record_id}")
async def update_existing_record(
    record_id: int,
    record: RecordInput,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    return await update_record(store, identity.user_id, record_id, record)

@router.delete("/{record_id}", status_code=204)
async def delete_existing_record(
    record_id: int,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    await delete_record(store, identity.user_id, record_id)
    return Response(status_code=204)

@router.get("/{record_id}/share")
async def get_share_link(
    record_id: int,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    record = await get_visible_record(store, identity, record_id)
    return {"url": share_link(record, settings.SITE_URL)}
