"""
Tracks a platform API's rate-limit window from its response headers.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from ..cache import Clock, utc_now

logger = logging.getLogger(__name__)

# X API rate-limit windows are fifteen minutes long.
DEFAULT_WINDOW = timedelta(minutes=15)


class RateLimitTracker:
    """
    In-process view of an API's remaining quota.

    Args:
        clock: Returns the current aware datetime
        header_prefix: Prefix of the ``-remaining``/``-reset``/``-limit`` headers
    """

    def __init__(self, clock: Optional[Clock] = None, header_prefix: str = "x-rate-limit"):
        self.clock = clock or utc_now
        self.header_prefix = header_prefix
        self.remaining: Optional[int] = None
        self.limit: Optional[int] = None
        self.reset_at: Optional[datetime] = None
        self.limited = False

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        """Record remaining / reset / limit values from an API response."""
        lowered = {key.lower(): value for key, value in headers.items()}

        remaining = _to_int(lowered.get(f"{self.header_prefix}-remaining"))
        reset = _to_int(lowered.get(f"{self.header_prefix}-reset"))
        limit = _to_int(lowered.get(f"{self.header_prefix}-limit"))

        if remaining is not None:
            self.remaining = remaining
        if reset is not None:
            self.reset_at = datetime.fromtimestamp(reset, tz=timezone.utc)
        if limit is not None:
            self.limit = limit

        self.limited = self.remaining == 0
        logger.debug("Rate limit: remaining=%s limit=%s reset=%s", self.remaining, self.limit, self.reset_at)

    def mark_rate_limited(self, reset_at: Optional[datetime] = None) -> None:
        """Force the limited state, e.g. after an HTTP 429."""
        self.limited = True
        self.remaining = 0
        if reset_at is not None:
            self.reset_at = reset_at
        elif self.reset_at is None or self.reset_at <= self.clock():
            self.reset_at = self.clock() + DEFAULT_WINDOW
        logger.info("API rate limited until %s", self.reset_at.isoformat())

    def should_skip_request(self) -> bool:
        """True while the quota is exhausted and the window has not reset."""
        if not self.limited:
            return False

        if self.reset_at is not None and self.clock() >= self.reset_at:
            logger.info("Rate limit window reset, allowing requests")
            self.limited = False
            self.remaining = None
            return False

        return True

    def get_status(self) -> Dict[str, Any]:
        is_limited = self.should_skip_request()
        minutes_until_reset = None
        if self.reset_at is not None:
            seconds = (self.reset_at - self.clock()).total_seconds()
            minutes_until_reset = max(0, math.ceil(seconds / 60))

        if is_limited:
            message = f"Rate limited. Resets in {minutes_until_reset} minutes"
        elif self.remaining is None:
            message = "No rate limit information yet"
        else:
            message = f"{self.remaining} requests remaining"

        return {
            "is_rate_limited": is_limited,
            "remaining_requests": self.remaining,
            "limit": self.limit,
            "reset_time": self.reset_at.isoformat() if self.reset_at else None,
            "minutes_until_reset": minutes_until_reset,
            "message": message,
        }


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
