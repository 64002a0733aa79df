# cinemalog/scripts/seed_catalog.py
import asyncio
import logging

from ..catalog.models import MovieInput, PlaceInput, PlaceType
from ..catalog.service import add_movie, add_place
from ..core.log import configure_logging
from ..core.store import StoreClient

logger = logging.getLogger(__name__)

STARTER_MOVIES = [
    {"title": "Tokyo Story", "director": "Yasujiro Ozu", "release_year": 1953, "genre": "Drama"},
    {"title": "Seven Samurai", "director": "Akira Kurosawa", "release_year": 1954, "genre": "Action"},
    {"title": "Spirited Away", "director": "Hayao Miyazaki", "release_year": 2001, "genre": "Animation"},
    {"title": "Shoplifters", "director": "Hirokazu Kore-eda", "release_year": 2018, "genre": "Drama"},
    {"title": "Drive My Car", "director": "Ryusuke Hamaguchi", "release_year": 2021, "genre": "Drama"},
]

STARTER_PLACES = [
    {"name": "Home", "place_type": PlaceType.HOME.value},
    {"name": "Netflix", "place_type": PlaceType.STREAMING.value},
    {"name": "Shinjuku Wald 9", "address": "3-1-26 Shinjuku, Tokyo", "place_type": PlaceType.THEATER.value},
]

async def seed_catalog(store: StoreClient) -> dict:
    """Add the starter movies and places; running it twice duplicates them"""
    movies = [await add_movie(store, MovieInput(**movie)) for movie in STARTER_MOVIES]
    places = [await add_place(store, PlaceInput(**place)) for place in STARTER_PLACES]
    logger.info(f"Seeded {len(movies)} movies and {len(places)} places")
    return {"movies": len(movies), "places": len(places)}

if __name__ == "__main__":
    from ..core.config import settings
    from ..core.dependencies import get_store

    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed_catalog(get_store()))
