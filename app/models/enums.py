"""
Enumerations shared by catalog, identity and playback models
"""
import enum


class ContentType(str, enum.Enum):
    MOVIE = "MOVIE"
    TV_SHOW = "TV_SHOW"
    DOCUMENTARY = "DOCUMENTARY"
    SHORT_FILM = "SHORT_FILM"
    SPECIAL = "SPECIAL"


class WatchStatus(str, enum.Enum):
    """Lifecycle of a continue-watching entry"""
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"
