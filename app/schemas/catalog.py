"""
Pydantic schemas for catalog objects embedded in playback responses
"""
from typing import List, Optional

from app.models import ContentType
from app.schemas.common import CamelModel


class GenreSummary(CamelModel):
    id: str
    name: str


class ContentSummary(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    type: ContentType
    release_year: Optional[int] = None
    duration: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    genres: List[GenreSummary] = []


class SeasonSummary(CamelModel):
    id: str
    show_id: str
    season_number: int
    title: Optional[str] = None


class EpisodeSummary(CamelModel):
    id: str
    episode_number: int
    title: Optional[str] = None
    duration: Optional[int] = None
    thumbnail_url: Optional[str] = None
    season: Optional[SeasonSummary] = None


class ProfileSummary(CamelModel):
    id: str
    name: str
    avatar: Optional[str] = None
