import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

from ..auth.models import Identity
from ..catalog.service import get_movies, get_places, movie_exists, place_exists
from ..comments.service import list_comments
from ..core.errors import NotFoundError, UpstreamError, ValidationError
from ..core.store import StoreClient, eq, gte, lte
from ..friends.service import can_view
from ..users.service import get_profile
from .models import Dashboard, Record, RecordDetail, RecordFilter, RecordInput, RecordListing, RecordStats

logger = logging.getLogger(__name__)

RECENT_RECORDS_LIMIT = 10
SHARE_URL = "https://twitter.com/intent/tweet"

# ---------------- QUERIES ----------------

def year_bounds(year: int) -> Tuple[str, str]:
    """Inclusive [Jan 1st, Dec 31st] of year as stored date strings"""
    return f"{year:04d}-01-01", f"{year:04d}-12-31"

def _watched_year(value: Any) -> int:
    if isinstance(value, date):
        return value.year
    return date.fromisoformat(str(value)[:10]).year

def matches_search(record: Record, term: str) -> bool:
    term = term.lower()
    candidates = [record.memo]
    if record.movie:
        candidates += [record.movie.title, record.movie.director]
    return any(term in text.lower() for text in candidates if text)

def compute_stats(records: List[Record]) -> RecordStats:
    ratings = [record.rating for record in records if record.rating is not None]
    genres = Counter(record.movie.genre for record in records if record.movie and record.movie.genre)

    top_genre = None
    if genres:
        # Ties go to the alphabetically first genre
        top_count = max(genres.values())
        top_genre = min(genre for genre, count in genres.items() if count == top_count)

    return RecordStats(
        count=len(records),
        average_rating=sum(ratings) / len(ratings) if ratings else None,
        top_genre=top_genre,
    )

async def _expand(store: StoreClient, rows: List[Dict[str, Any]]) -> List[Record]:
    """Attach the catalog movie and place to each record row"""
    movies = await get_movies(store, [row['movie_id'] for row in rows])
    places = await get_places(store, [row.get('place_id') for row in rows])
    return [
        Record(**row, movie=movies.get(row['movie_id']), place=places.get(row.get('place_id')))
        for row in rows
    ]

async def available_years(store: StoreClient, owner_id: str) -> List[int]:
    rows = store.select('records', [eq('user_id', owner_id)])
    return sorted({_watched_year(row['watched_at']) for row in rows}, reverse=True)

async def list_records(store: StoreClient, owner_id: str, record_filter: RecordFilter) -> RecordListing:
    filters = [eq('user_id', owner_id)]
    if record_filter.year is not None:
        start, end = year_bounds(record_filter.year)
        filters += [gte('watched_at', start), lte('watched_at', end)]

    rows = store.select('records', filters, order_by='watched_at', descending=True)
    records = await _expand(store, rows)

    search = (record_filter.search or '').strip()
    if search:
        records = [record for record in records if matches_search(record, search)]

    return RecordListing(
        records=records,
        stats=compute_stats(records),
        years=await available_years(store, owner_id),
        current_year=record_filter.year,
        search=search or None,
    )

async def get_dashboard(store: StoreClient, owner_id: str, today: Optional[date] = None) -> Dashboard:
    rows = store.select('records', [eq('user_id', owner_id)], order_by='watched_at', descending=True)
    records = await _expand(store, rows)

    today = today or date.today()
    watched_this_month = sum(
        1 for record in records
        if record.watched_at.year == today.year and record.watched_at.month == today.month
    )
    return Dashboard(
        recent_records=records[:RECENT_RECORDS_LIMIT],
        stats=compute_stats(records),
        watched_this_month=watched_this_month,
    )

async def get_record(store: StoreClient, record_id: int) -> Optional[Record]:
    rows = store.select('records', [eq('id', record_id)], limit=1)
    if not rows:
        return None
    return (await _expand(store, rows))[0]

async def get_owned_record(store: StoreClient, owner_id: str, record_id: int) -> Record:
    rows = store.select('records', [eq('id', record_id), eq('user_id', owner_id)], limit=1)
    if not rows:
        raise NotFoundError("Record not found")
    return (await _expand(store, rows))[0]

async def get_visible_record(store: StoreClient, viewer: Identity, record_id: int) -> Record:
    """The record if the viewer owns it or is an accepted friend of its owner.

    A failed friendship lookup denies access: it is logged and reported as
    not found, same as a record the viewer may not see.
    """
    record = await get_record(store, record_id)
    if record is None:
        raise NotFoundError("Record not found")

    try:
        visible = await can_view(store, viewer.user_id, record)
    except UpstreamError as e:
        logger.warning(f"Friend check failed for viewer {viewer.user_id} on record {record_id}: {e.detail}")
        visible = False

    if not visible:
        raise NotFoundError("Record not found")
    return record

async def get_record_detail(store: StoreClient, viewer: Identity, record_id: int) -> RecordDetail:
    record = await get_visible_record(store, viewer, record_id)
    is_owner = record.user_id == viewer.user_id
    return RecordDetail(
        record=record,
        owner=await get_profile(store, record.user_id),
        comments=await list_comments(store, record.id),
        is_owner=is_owner,
        can_comment=not is_owner,
    )

def share_link(record: Record, base_url: str) -> str:
    title = record.movie.title if record.movie else ""
    params = {
        'text': f"『{title}』を観ました！",
        'url': f"{base_url.rstrip('/')}/records/{record.id}",
    }
    return f"{SHARE_URL}?{urlencode(params, quote_via=quote)}"

# ---------------- MUTATIONS ----------------

async def _validate_references(store: StoreClient, record_input: RecordInput):
    if not await movie_exists(store, record_input.movie_id):
        raise ValidationError(f"Movie {record_input.movie_id} does not exist")
    if record_input.place_id is not None and not await place_exists(store, record_input.place_id):
        raise ValidationError(f"Place {record_input.place_id} does not exist")

def _record_data(record_input: RecordInput) -> Dict[str, Any]:
    return {
        'movie_id': record_input.movie_id,
        'place_id': record_input.place_id,
        'watched_at': record_input.watched_at.isoformat(),
        'memo': record_input.memo or None,
        'rating': record_input.rating,
    }

async def create_record(store: StoreClient, owner_id: str, record_input: RecordInput) -> Record:
    """Persist a new record for owner_id. Retrying creates a duplicate."""
    await _validate_references(store, record_input)

    now = datetime.now(timezone.utc)
    row = store.insert('records', {
        **_record_data(record_input),
        'user_id': owner_id,
        'created_at': now,
        'updated_at': now,
    })
    logger.info(f"User {owner_id} created record {row['id']} for movie {record_input.movie_id}")
    return (await _expand(store, [row]))[0]

async def update_record(store: StoreClient, owner_id: str, record_id: int, record_input: RecordInput) -> Record:
    await _validate_references(store, record_input)

    rows = store.update(
        'records',
        [eq('id', record_id), eq('user_id', owner_id)],
        {**_record_data(record_input), 'updated_at': datetime.now(timezone.utc)},
    )
    if not rows:
        raise NotFoundError("Record not found")

    logger.info(f"User {owner_id} updated record {record_id}")
    return (await _expand(store, rows))[0]

async def delete_record(store: StoreClient, owner_id: str, record_id: int):
    deleted = store.delete('records', [eq('id', record_id), eq('user_id', owner_id)])
    if not deleted:
        raise NotFoundError("Record not found")
    logger.info(f"User {owner_id} deleted record {record_id}")
