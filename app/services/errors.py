"""
Domain errors raised by the playback services

Each error carries the HTTP status and machine-readable code the API
layer renders into the error envelope.
"""


class WatchProgressError(Exception):
    """Base class for tracker failures"""

    status_code = 500
    error = "watch_progress_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreconditionFailed(WatchProgressError):
    """No active profile, or the profile is not owned by the user"""

    status_code = 400
    error = "precondition_failed"


class NotFound(WatchProgressError):
    """Unknown content/episode, or an episode that belongs to another show"""

    status_code = 404
    error = "not_found"


class ValidationFailed(WatchProgressError):
    """Unusable progress or duration values"""

    status_code = 400
    error = "validation_failed"


class StorageFailure(WatchProgressError):
    """The database rejected or lost the write; nothing was committed"""

    status_code = 500
    error = "storage_failure"
