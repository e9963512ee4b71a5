"""
Playback state models - durable watch history and the continue-watching shelf

Both tables share the same key: one row per (user, profile, watchable unit).
A unit is an episode when `episode_id` is set, otherwise the movie in
`content_id`. For episodes `content_id` still holds the parent show so
listings can join it, but it never takes part in the key.
"""
from sqlalchemy import (
    Column, String, Float, Boolean, Enum, TIMESTAMP, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func, text
)
from sqlalchemy.orm import declared_attr, relationship

from app.database import Base
from app.models.base import generate_id
from app.models.enums import WatchStatus


MOVIE_KEY = ("user_id", "profile_id", "content_id")
EPISODE_KEY = ("user_id", "profile_id", "episode_id")


def _unit_key_args(prefix: str):
    """Unique constraints for both unit shapes plus the value checks"""
    return (
        UniqueConstraint(*EPISODE_KEY, name=f"uq_{prefix}_episode"),
        Index(
            f"uq_{prefix}_movie",
            *MOVIE_KEY,
            unique=True,
            sqlite_where=text("episode_id IS NULL"),
            postgresql_where=text("episode_id IS NULL"),
        ),
        Index(f"ix_{prefix}_viewer_recent", "user_id", "profile_id", "last_watched_at"),
        CheckConstraint("progress >= 0", name=f"ck_{prefix}_progress_nonneg"),
        CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name=f"ck_{prefix}_pct_range",
        ),
    )


class PlaybackStateMixin:
    id = Column(String(36), primary_key=True, default=generate_id)
    progress = Column(Float, nullable=False, default=0.0)  # seconds
    watch_time = Column(Float)  # reported duration, seconds
    completion_percentage = Column(Float, nullable=False, default=0.0)  # 0.00 to 100.00
    last_watched_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def user_id(cls):
        return Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    @declared_attr
    def profile_id(cls):
        return Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    @declared_attr
    def content_id(cls):
        return Column(String(36), ForeignKey("contents.id", ondelete="CASCADE"), nullable=False)

    @declared_attr
    def episode_id(cls):
        return Column(String(36), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=True)

    @declared_attr
    def content(cls):
        return relationship("Content")

    @declared_attr
    def episode(cls):
        return relationship("Episode")

    @declared_attr
    def profile(cls):
        return relationship("Profile")

    @property
    def is_episode(self) -> bool:
        return self.episode_id is not None


class WatchHistory(PlaybackStateMixin, Base):
    """
    Watch history table - last known playback state per unit

    Created on the first progress report and updated in place afterwards.
    Only account/profile/catalog deletion removes rows.
    """
    __tablename__ = "watch_history"

    completed = Column(Boolean, nullable=False, default=False)

    __table_args__ = _unit_key_args("watch_history")

    def __repr__(self):
        return (
            f"<WatchHistory(profile_id={self.profile_id}, content_id={self.content_id}, "
            f"episode_id={self.episode_id}, completed={self.completed})>"
        )


class ContinueWatching(PlaybackStateMixin, Base):
    """
    Continue watching table - resume pointer, present only while a unit is
    below the completion threshold
    """
    __tablename__ = "continue_watching"

    status = Column(
        Enum(WatchStatus, name="watch_status"),
        nullable=False,
        default=WatchStatus.IN_PROGRESS,
    )

    __table_args__ = _unit_key_args("continue_watching")

    def __repr__(self):
        return (
            f"<ContinueWatching(profile_id={self.profile_id}, content_id={self.content_id}, "
            f"episode_id={self.episode_id}, status={self.status})>"
        )
