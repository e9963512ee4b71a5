"""
Database models package
"""
from app.models.enums import ContentType, WatchStatus
from app.models.user import User
from app.models.profile import Profile
from app.models.genre import Genre, content_genres
from app.models.content import Content, Season, Episode
from app.models.playback import WatchHistory, ContinueWatching

__all__ = [
    "ContentType", "WatchStatus",
    "User", "Profile", "Genre", "content_genres",
    "Content", "Season", "Episode",
    "WatchHistory", "ContinueWatching",
]
