"""
Genre model and the content/genre association table
"""
from sqlalchemy import Column, String, Table, ForeignKey

from app.database import Base
from app.models.base import generate_id


content_genres = Table(
    "content_genres",
    Base.metadata,
    Column("content_id", String(36), ForeignKey("contents.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", String(36), ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(50), unique=True, nullable=False)

    def __repr__(self):
        return f"<Genre(name={self.name})>"
