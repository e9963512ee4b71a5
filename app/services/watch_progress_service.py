"""
Watch progress tracker
Reconciles playback reports into watch history and the continue-watching shelf
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.config import settings
from app.models import (
    Content, Episode, Season, Profile, WatchHistory, ContinueWatching, WatchStatus
)
from app.models.base import generate_id
from app.models.playback import EPISODE_KEY, MOVIE_KEY
from app.services.completion_service import completion_service
from app.services.errors import NotFound, PreconditionFailed, StorageFailure, ValidationFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewer:
    """Whose playback state is being recorded"""
    user_id: str
    profile_id: Optional[str]


@dataclass(frozen=True)
class WatchUnit:
    """A movie (content only) or one episode of a show (content + episode)"""
    content_id: str
    episode_id: Optional[str] = None


_UPSERT_BUILDERS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class WatchProgressService:
    """
    Service for recording playback progress

    State per unit and viewer:
    - UNSEEN: no watch history row
    - IN_PROGRESS: history.completed is False and a continue-watching row exists
    - COMPLETED: history.completed is True and no continue-watching row exists

    Rewatching a completed unit moves it back to IN_PROGRESS; there is no
    terminal state.
    """

    def record_progress(
        self,
        db: Session,
        viewer: Viewer,
        unit: WatchUnit,
        progress_seconds: float,
        duration_seconds: float,
        watched_at: Optional[datetime] = None
    ) -> WatchHistory:
        """
        Record a playback progress report

        Validation happens before any write. The history upsert and the
        continue-watching upsert/delete are committed together.

        Args:
            db: Database session
            viewer: User and active profile
            unit: Movie or episode being watched
            progress_seconds: Elapsed position in seconds
            duration_seconds: Total duration in seconds
            watched_at: Timestamp of the report (defaults to now)

        Returns:
            The updated WatchHistory row

        Raises:
            PreconditionFailed: missing or foreign profile
            ValidationFailed: bad numbers, or a show reported without episode
            NotFound: unknown content, or episode not part of the content
            StorageFailure: the transaction failed and was rolled back
        """
        self.require_profile(db, viewer)

        completed, completion_pct = completion_service.calculate_completion(
            progress_seconds, duration_seconds
        )

        self._require_unit(db, unit)

        watched_at = watched_at or datetime.now(timezone.utc)
        state = {
            "progress": float(progress_seconds),
            "watch_time": float(duration_seconds),
            "completion_percentage": completion_pct,
            "last_watched_at": watched_at,
        }

        try:
            self._upsert(db, WatchHistory, viewer, unit, {**state, "completed": completed})

            if completed:
                db.execute(
                    delete(ContinueWatching).where(*self._unit_clauses(ContinueWatching, viewer, unit))
                )
            else:
                self._upsert(
                    db, ContinueWatching, viewer, unit,
                    {**state, "status": WatchStatus.IN_PROGRESS}
                )

            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Failed to record progress: profile={viewer.profile_id}, "
                f"content={unit.content_id}, episode={unit.episode_id}: {str(e)}",
                exc_info=True
            )
            raise StorageFailure("Failed to record watch history") from e

        logger.info(
            f"Progress recorded: profile={viewer.profile_id}, content={unit.content_id}, "
            f"episode={unit.episode_id}, completion={completion_pct:.2f}%, completed={completed}"
        )
        if completed:
            logger.info(f"Removed from continue watching: profile={viewer.profile_id}, unit={unit}")

        return db.execute(
            select(WatchHistory)
            .where(*self._unit_clauses(WatchHistory, viewer, unit))
            .execution_options(populate_existing=True)
        ).scalar_one()

    def resolve_episode(
        self,
        db: Session,
        content_id: str,
        season_number: int,
        episode_number: int
    ) -> Episode:
        """Find an episode of a show by its season and episode numbers"""
        episode = (
            db.query(Episode)
            .join(Season, Episode.season_id == Season.id)
            .filter(
                Season.show_id == content_id,
                Season.season_number == season_number,
                Episode.episode_number == episode_number,
            )
            .first()
        )
        if not episode:
            raise NotFound("Episode not found")
        return episode

    def list_continue_watching(
        self,
        db: Session,
        viewer: Viewer,
        limit: Optional[int] = None
    ) -> List[ContinueWatching]:
        """
        Get the resume shelf for a viewer

        Only IN_PROGRESS entries, most recently watched first, capped at
        `limit` (CONTINUE_WATCHING_LIMIT by default).
        """
        self.require_profile(db, viewer)

        return (
            db.query(ContinueWatching)
            .options(
                selectinload(ContinueWatching.content).selectinload(Content.genres),
                selectinload(ContinueWatching.episode).selectinload(Episode.season),
            )
            .filter(
                ContinueWatching.user_id == viewer.user_id,
                ContinueWatching.profile_id == viewer.profile_id,
                ContinueWatching.status == WatchStatus.IN_PROGRESS,
            )
            .order_by(ContinueWatching.last_watched_at.desc())
            .limit(limit or settings.CONTINUE_WATCHING_LIMIT)
            .all()
        )

    def list_watch_history(
        self,
        db: Session,
        user_id: str,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[WatchHistory]:
        """Get watch history across all profiles of a user, newest first"""
        return (
            db.query(WatchHistory)
            .options(joinedload(WatchHistory.profile))
            .filter(WatchHistory.user_id == user_id)
            .order_by(WatchHistory.last_watched_at.desc())
            .offset(offset)
            .limit(limit or settings.WATCH_HISTORY_PAGE_SIZE)
            .all()
        )

    def require_profile(self, db: Session, viewer: Viewer) -> Profile:
        if not viewer.profile_id:
            raise PreconditionFailed("Active profile is required")

        profile = db.get(Profile, viewer.profile_id)
        if not profile or profile.user_id != viewer.user_id:
            raise PreconditionFailed("Active profile does not belong to this user")
        return profile

    def _require_unit(self, db: Session, unit: WatchUnit) -> Content:
        content = db.get(Content, unit.content_id)
        if not content:
            raise NotFound("Content not found")

        if unit.episode_id:
            belongs = (
                db.query(Episode.id)
                .join(Season, Episode.season_id == Season.id)
                .filter(Episode.id == unit.episode_id, Season.show_id == unit.content_id)
                .first()
            )
            if not belongs:
                raise NotFound("Episode does not belong to this content")
        elif content.is_series:
            raise ValidationFailed("Episode ID is required for TV shows")

        return content

    def _unit_clauses(self, model, viewer: Viewer, unit: WatchUnit) -> list:
        clauses = [model.user_id == viewer.user_id, model.profile_id == viewer.profile_id]
        if unit.episode_id:
            clauses.append(model.episode_id == unit.episode_id)
        else:
            clauses.extend([model.content_id == unit.content_id, model.episode_id.is_(None)])
        return clauses

    def _upsert(self, db: Session, model, viewer: Viewer, unit: WatchUnit, state: dict) -> None:
        """
        Insert the row for the unit, or update it in place on key conflict

        Uses the database's native ON CONFLICT so concurrent reports for the
        same key never create a second row.
        """
        dialect = db.get_bind().dialect.name
        build_insert = _UPSERT_BUILDERS.get(dialect)
        if build_insert is None:
            raise StorageFailure(f"Upsert is not supported on {dialect}")

        stmt = build_insert(model).values(
            id=generate_id(),
            user_id=viewer.user_id,
            profile_id=viewer.profile_id,
            content_id=unit.content_id,
            episode_id=unit.episode_id,
            **state
        )

        if unit.episode_id:
            stmt = stmt.on_conflict_do_update(index_elements=list(EPISODE_KEY), set_=state)
        else:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(MOVIE_KEY),
                index_where=model.episode_id.is_(None),
                set_=state,
            )

        db.execute(stmt)


# Global instance
watch_progress_service = WatchProgressService()
