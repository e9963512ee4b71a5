"""
Pydantic schemas for playback progress requests and responses
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.catalog import ContentSummary, EpisodeSummary, ProfileSummary
from app.schemas.common import CamelModel


class EpisodeProgressReport(BaseModel):
    """Progress tick for an episode addressed by season/episode number"""
    progress: float = Field(..., ge=0, description="Elapsed playback position in seconds")
    duration: Optional[float] = Field(
        None, gt=0, description="Episode duration in seconds; defaults to the catalog duration"
    )
    completed: bool = Field(False, description="Client reached the end of playback")

    class Config:
        extra = "forbid"


class ContentProgressReport(BaseModel):
    """Progress tick for a movie, or for an episode addressed by id"""
    progress: float = Field(..., ge=0, description="Elapsed playback position in seconds")
    duration: float = Field(..., gt=0, description="Total duration in seconds")
    episode_id: Optional[str] = Field(None, alias="episodeId")

    class Config:
        extra = "forbid"
        populate_by_name = True


class WatchHistoryOut(CamelModel):
    """Watch history row as returned after a progress report"""
    id: str
    user_id: str
    profile_id: str
    content_id: str
    episode_id: Optional[str] = None
    progress: float
    watch_time: Optional[float] = None
    completion_percentage: float
    completed: bool
    last_watched_at: datetime


class WatchHistoryItem(WatchHistoryOut):
    """Watch history listing entry"""
    profile: Optional[ProfileSummary] = None


class ContinueWatchingItem(CamelModel):
    """Resume shelf entry"""
    id: str
    progress: float
    completion_percentage: float
    updated_at: datetime
    content: Optional[ContentSummary] = None
    episode: Optional[EpisodeSummary] = None
    is_episode: bool
