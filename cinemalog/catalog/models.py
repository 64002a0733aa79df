from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, Union
from datetime import datetime

class PlaceType(str, Enum):
    THEATER = "theater"
    HOME = "home"
    STREAMING = "streaming"
    OTHER = "other"

class Movie(BaseModel):
    id: int
    title: str
    director: Optional[str] = None
    release_year: Optional[int] = None
    genre: Optional[str] = None
    created_at: Optional[datetime] = None

class Place(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    place_type: Optional[str] = None  # a PlaceType value or free-form
    created_at: Optional[datetime] = None

class MovieInput(BaseModel):
    title: str
    director: Optional[str] = None
    release_year: Optional[Union[int, str]] = Field(None, description="Non-numeric values are ignored")
    genre: Optional[str] = None

class PlaceInput(BaseModel):
    name: str
    address: Optional[str] = None
    place_type: Optional[str] = PlaceType.THEATER.value
