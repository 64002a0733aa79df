from pydantic import BaseModel, Field, computed_field
from typing import List, Optional
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from ..catalog.models import Movie, Place
from ..comments.models import Comment
from ..users.models import UserProfile

NO_VALUE = "---"
MAX_MEMO_LENGTH = 5000

class Record(BaseModel):
    id: int
    user_id: str
    movie_id: int
    place_id: Optional[int] = None
    watched_at: date
    memo: Optional[str] = None
    rating: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    movie: Optional[Movie] = None
    place: Optional[Place] = None

class RecordInput(BaseModel):
    movie_id: int
    watched_at: date
    place_id: Optional[int] = None
    memo: Optional[str] = Field(None, max_length=MAX_MEMO_LENGTH)
    rating: Optional[int] = Field(None, ge=1, le=10)

class RecordFilter(BaseModel):
    year: Optional[int] = None
    search: Optional[str] = None

class RecordStats(BaseModel):
    count: int = 0
    average_rating: Optional[float] = None
    top_genre: Optional[str] = None

    @computed_field
    @property
    def average_rating_display(self) -> str:
        if self.average_rating is None:
            return NO_VALUE
        # Halves round up: 7.25 shows as 7.3
        return str(Decimal(str(self.average_rating)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    @computed_field
    @property
    def top_genre_display(self) -> str:
        return self.top_genre or NO_VALUE

class RecordListing(BaseModel):
    records: List[Record]
    stats: RecordStats
    years: List[int]
    current_year: Optional[int] = None
    search: Optional[str] = None

class Dashboard(BaseModel):
    recent_records: List[Record]
    stats: RecordStats
    watched_this_month: int

class RecordDetail(BaseModel):
    record: Record
    owner: Optional[UserProfile] = None
    comments: List[Comment] = []
    is_owner: bool
    can_comment: bool
