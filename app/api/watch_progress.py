"""
Watch progress API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.api.deps import get_viewer
from app.config import settings
from app.database import get_db
from app.schemas.catalog import ContentSummary, EpisodeSummary
from app.schemas.common import ApiResponse
from app.schemas.progress import (
    EpisodeProgressReport, ContentProgressReport,
    WatchHistoryOut, ContinueWatchingItem
)
from app.services.completion_service import completion_service
from app.services.errors import ValidationFailed
from app.services.watch_progress_service import (
    Viewer, WatchUnit, watch_progress_service
)

router = APIRouter(prefix="/api/content", tags=["watch-progress"])
logger = logging.getLogger(__name__)


@router.post(
    "/tv-show/{content_id}/season/{season_number}/episode/{episode_number}/watch-history",
    response_model=ApiResponse[WatchHistoryOut]
)
def record_episode_watch_history(
    content_id: str,
    season_number: int,
    episode_number: int,
    report: EpisodeProgressReport,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db)
):
    """
    Record playback progress for an episode

    - Resolves the episode by season and episode number
    - Uses the catalog duration when the client does not send one
    - `completed: true` records the episode as watched to the end
    """
    # Checked again inside record_progress; done first so a missing profile
    # is a 400 rather than the 404 of the episode lookup below
    watch_progress_service.require_profile(db, viewer)
    episode = watch_progress_service.resolve_episode(db, content_id, season_number, episode_number)

    duration = report.duration or completion_service.duration_seconds_from_minutes(episode.duration)
    if duration is None:
        raise ValidationFailed("Valid duration value is required")

    progress = duration if report.completed else report.progress

    record = watch_progress_service.record_progress(
        db,
        viewer,
        WatchUnit(content_id=content_id, episode_id=episode.id),
        progress_seconds=progress,
        duration_seconds=duration
    )

    return ApiResponse(data=WatchHistoryOut.model_validate(record))


@router.post("/content/{content_id}/watch-history", response_model=ApiResponse[WatchHistoryOut])
def record_watch_history(
    content_id: str,
    report: ContentProgressReport,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db)
):
    """
    Record playback progress for a movie

    Shows must name the episode with `episodeId`; it has to belong to
    one of the show's seasons.
    """
    record = watch_progress_service.record_progress(
        db,
        viewer,
        WatchUnit(content_id=content_id, episode_id=report.episode_id),
        progress_seconds=report.progress,
        duration_seconds=report.duration
    )

    return ApiResponse(data=WatchHistoryOut.model_validate(record))


@router.get("/continue-watching", response_model=ApiResponse[List[ContinueWatchingItem]])
def get_continue_watching(
    limit: Optional[int] = Query(None, ge=1, le=settings.CONTINUE_WATCHING_LIMIT),
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db)
):
    """
    Get the resume shelf for the active profile

    Returns in-progress movies and episodes, most recently watched first.
    """
    entries = watch_progress_service.list_continue_watching(db, viewer, limit=limit)

    items = [
        ContinueWatchingItem(
            id=entry.id,
            progress=entry.progress,
            completion_percentage=entry.completion_percentage,
            updated_at=entry.last_watched_at,
            content=ContentSummary.model_validate(entry.content) if entry.content else None,
            episode=EpisodeSummary.model_validate(entry.episode) if entry.episode else None,
            is_episode=entry.is_episode,
        )
        for entry in entries
    ]

    return ApiResponse(data=items)
