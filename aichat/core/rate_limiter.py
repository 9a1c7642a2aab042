"""
Rate Limiter - Control how often a user may hit the LLM.

Simple in-memory sliding window keyed by user id. Plan quotas (messages per
day) are enforced separately against the database by the chat service; this
limiter only smooths bursts.
"""
import threading
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Deque, Dict, Optional, Tuple

from aichat.core.logging_config import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RateLimiter:
    """
    Sliding window rate limiter.

    Example:
        >>> limiter = RateLimiter(requests_per_minute=30)
        >>> limiter.is_allowed("user-123")
        (True, 29)
    """

    def __init__(
        self,
        requests_per_minute: int = 30,
        cleanup_interval_minutes: int = 5
    ):
        self.limit = requests_per_minute
        self.window = timedelta(minutes=1)
        self.cleanup_interval = timedelta(minutes=cleanup_interval_minutes)

        self._requests: Dict[str, Deque[datetime]] = {}
        self._lock = threading.RLock()
        self._last_cleanup = _now()

        logger.info(f"RateLimiter initialized: {requests_per_minute} requests/minute")

    def is_allowed(self, identifier: str) -> Tuple[bool, int]:
        """
        Check and record a request for the given identifier.

        Returns:
            Tuple of (is_allowed, remaining_requests)
        """
        with self._lock:
            self._maybe_cleanup()

            now = _now()
            recent = self._prune(identifier, now)

            if len(recent) >= self.limit:
                logger.warning(f"Rate limit exceeded for: {identifier[:8]}...")
                return False, 0

            recent.append(now)
            return True, self.limit - len(recent)

    def get_remaining(self, identifier: str) -> int:
        """Remaining requests for an identifier in the current window."""
        with self._lock:
            if identifier not in self._requests:
                return self.limit
            return max(0, self.limit - len(self._prune(identifier, _now())))

    def get_reset_time(self, identifier: str) -> datetime:
        """When the oldest recorded request leaves the window."""
        with self._lock:
            recent = self._requests.get(identifier)
            if not recent:
                return _now()
            return recent[0] + self.window

    def retry_after(self, identifier: str) -> int:
        """Whole seconds until the next request would be allowed (at least 1)."""
        remaining = (self.get_reset_time(identifier) - _now()).total_seconds()
        return max(1, int(remaining))

    def _prune(self, identifier: str, now: datetime) -> Deque[datetime]:
        cutoff = now - self.window
        recent = self._requests.setdefault(identifier, deque())
        while recent and recent[0] <= cutoff:
            recent.popleft()
        return recent

    def _maybe_cleanup(self) -> None:
        """Drop identifiers with no requests left in the window."""
        now = _now()
        if now - self._last_cleanup < self.cleanup_interval:
            return

        for identifier in list(self._requests.keys()):
            if not self._prune(identifier, now):
                del self._requests[identifier]

        self._last_cleanup = now
        logger.debug(f"Rate limiter cleanup: {len(self._requests)} active users")


# Global rate limiter instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the global rate limiter."""
    global _rate_limiter
    if _rate_limiter is None:
        from aichat.core.config import get_settings
        _rate_limiter = RateLimiter(
            requests_per_minute=get_settings().rate_limit_per_minute
        )
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Reset the global rate limiter (for testing)."""
    global _rate_limiter
    _rate_limiter = None
