"""
Playback completion detection service
Single source of truth for completion percentage and the completed flag
"""
import logging
import math
from typing import Optional, Tuple

from app.services.errors import ValidationFailed

logger = logging.getLogger(__name__)


class CompletionService:
    """
    Service for deciding whether a watchable unit has been finished

    Algorithm:
    - completion = min(100, progress / duration * 100)
    - completed when completion >= THRESHOLD

    The same THRESHOLD drives the watch history `completed` flag and the
    continue-watching lifecycle, so both views always agree.
    """

    # Completion threshold, percent of duration
    THRESHOLD = 90.0

    MAX_PERCENTAGE = 100.0

    def calculate_completion(
        self,
        progress_seconds: float,
        duration_seconds: float
    ) -> Tuple[bool, float]:
        """
        Calculate completion status for a progress report

        Args:
            progress_seconds: Elapsed playback position in seconds
            duration_seconds: Total duration of the unit in seconds

        Returns:
            Tuple of (is_completed, completion_percentage)

        Raises:
            ValidationFailed: non-numeric values, negative progress or
                non-positive duration
        """
        progress = self._as_number(progress_seconds, "progress")
        duration = self._as_number(duration_seconds, "duration")

        if duration <= 0:
            raise ValidationFailed("Duration must be greater than zero")
        if progress < 0:
            raise ValidationFailed("Progress cannot be negative")

        # Clients may report slightly past the end while buffering
        completion_percentage = min(self.MAX_PERCENTAGE, (progress / duration) * 100)
        is_completed = completion_percentage >= self.THRESHOLD

        logger.debug(
            f"Completion calculation: progress={progress}s, duration={duration}s, "
            f"completion={completion_percentage:.2f}%, completed={is_completed}"
        )

        return is_completed, completion_percentage

    def duration_seconds_from_minutes(self, minutes: Optional[int]) -> Optional[float]:
        """Catalog durations are stored in minutes"""
        if minutes is None or minutes <= 0:
            return None
        return float(minutes) * 60

    def _as_number(self, value, field: str) -> float:
        # bool is an int subclass but never a meaningful position
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationFailed(f"Valid {field} value is required")
        number = float(value)
        if not math.isfinite(number):
            raise ValidationFailed(f"Valid {field} value is required")
        return number


# Global instance
completion_service = CompletionService()
