"""
Catalog models - content items, their seasons and episodes
"""
from sqlalchemy import (
    Column, String, Integer, Text, Enum, TIMESTAMP, ForeignKey, UniqueConstraint, func
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.base import generate_id
from app.models.enums import ContentType
from app.models.genre import content_genres


class Content(Base):
    """
    Contents table - a movie, special or the parent record of a TV show

    Durations are catalog values in minutes.
    """
    __tablename__ = "contents"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(Enum(ContentType, name="content_type"), nullable=False, default=ContentType.MOVIE)
    release_year = Column(Integer)
    duration = Column(Integer)  # minutes
    poster_url = Column(String(500))
    backdrop_url = Column(String(500))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    genres = relationship("Genre", secondary=content_genres, lazy="selectin")
    seasons = relationship(
        "Season",
        back_populates="show",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Season.season_number",
    )

    @property
    def is_series(self) -> bool:
        return self.type == ContentType.TV_SHOW

    def __repr__(self):
        return f"<Content(id={self.id}, title={self.title}, type={self.type})>"


class Season(Base):
    __tablename__ = "seasons"

    id = Column(String(36), primary_key=True, default=generate_id)
    show_id = Column(String(36), ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True)
    season_number = Column(Integer, nullable=False)
    title = Column(String(255))
    poster_url = Column(String(500))

    show = relationship("Content", back_populates="seasons")
    episodes = relationship(
        "Episode",
        back_populates="season",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Episode.episode_number",
    )

    __table_args__ = (
        UniqueConstraint("show_id", "season_number", name="uq_season_show_number"),
    )

    def __repr__(self):
        return f"<Season(show_id={self.show_id}, number={self.season_number})>"


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(String(36), primary_key=True, default=generate_id)
    season_id = Column(String(36), ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False, index=True)
    episode_number = Column(Integer, nullable=False)
    title = Column(String(255))
    duration = Column(Integer)  # minutes
    thumbnail_url = Column(String(500))

    season = relationship("Season", back_populates="episodes")

    __table_args__ = (
        UniqueConstraint("season_id", "episode_number", name="uq_episode_season_number"),
    )

    def __repr__(self):
        return f"<Episode(season_id={self.season_id}, number={self.episode_number})>"
