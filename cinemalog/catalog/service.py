import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..core.errors import ValidationError
from ..core.store import StoreClient, eq, in_
from .models import Movie, MovieInput, Place, PlaceInput

logger = logging.getLogger(__name__)

def _clean(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field; blank becomes None"""
    if value is None:
        return None
    value = value.strip()
    return value or None

def _parse_int(value: Any) -> Optional[int]:
    # Non-numeric input is treated as absent rather than rejected
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None

async def add_movie(store: StoreClient, movie: MovieInput) -> Movie:
    """Insert a shared catalog movie. Identical input creates another row."""
    title = _clean(movie.title)
    if not title:
        raise ValidationError("Movie title is required")

    row = store.insert('movies', {
        'title': title,
        'director': _clean(movie.director),
        'release_year': _parse_int(movie.release_year),
        'genre': _clean(movie.genre),
        'created_at': datetime.now(timezone.utc),
    })
    logger.info(f"Added movie {row['id']}: {title}")
    return Movie(**row)

async def add_place(store: StoreClient, place: PlaceInput) -> Place:
    """Insert a shared catalog place. Identical input creates another row."""
    name = _clean(place.name)
    if not name:
        raise ValidationError("Place name is required")

    row = store.insert('places', {
        'name': name,
        'address': _clean(place.address),
        'place_type': _clean(place.place_type),
        'created_at': datetime.now(timezone.utc),
    })
    logger.info(f"Added place {row['id']}: {name}")
    return Place(**row)

async def list_movies(store: StoreClient) -> List[Movie]:
    return [Movie(**row) for row in store.select('movies', order_by='title')]

async def list_places(store: StoreClient) -> List[Place]:
    return [Place(**row) for row in store.select('places', order_by='name')]

async def movie_exists(store: StoreClient, movie_id: int) -> bool:
    return bool(store.select('movies', [eq('id', movie_id)], limit=1))

async def place_exists(store: StoreClient, place_id: int) -> bool:
    return bool(store.select('places', [eq('id', place_id)], limit=1))

async def get_movies(store: StoreClient, movie_ids: Iterable[int]) -> Dict[int, Movie]:
    ids = sorted(set(movie_ids))
    if not ids:
        return {}
    return {row['id']: Movie(**row) for row in store.select('movies', [in_('id', ids)])}

async def get_places(store: StoreClient, place_ids: Iterable[int]) -> Dict[int, Place]:
    ids = sorted({place_id for place_id in place_ids if place_id is not None})
    if not ids:
        return {}
    return {row['id']: Place(**row) for row in store.select('places', [in_('id', ids)])}
