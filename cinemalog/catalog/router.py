from fastapi import APIRouter, Depends

from ..auth.models import Identity
from ..core.dependencies import get_identity, get_store
from ..core.store import StoreClient
from .models import MovieInput, PlaceInput
from .service import add_movie, add_place, list_movies, list_places

router = APIRouter(prefix="/catalog", tags=["catalog"])

@router.get("/movies")
async def get_movies(
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """All catalog movies ordered by title"""
    return {"movies": await list_movies(store)}

@router.post("/movies", status_code=201)
async def create_movie(
    movie: MovieInput,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    return await add_movie(store, movie)

@router.get("/places")
async def get_places(
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    """All catalog places ordered by name"""
    return {"places": await list_places(store)}

@router.post("/places", status_code=201)
async def create_place(
    place: PlaceInput,
    identity: Identity = Depends(get_identity),
    store: StoreClient = Depends(get_store),
):
    return await add_place(store, place)
