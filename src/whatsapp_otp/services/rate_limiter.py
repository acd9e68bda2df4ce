"""Per-phone sliding-window rate limiter for OTP issuance."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
WINDOW_SECONDS = 60 * 60


class RateLimiter:
    """In-memory sliding-window counter keyed by phone number.

    Only admitted attempts are recorded, so a rejected request never pushes
    the reset further into the future.  ``admit`` does not await, which makes
    the read-filter-append sequence atomic within one event loop.  Separate
    worker processes each keep their own counts.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_attempts: int = MAX_ATTEMPTS,
        window_seconds: float = WINDOW_SECONDS,
    ) -> None:
        self._clock = clock
        self._max_attempts = max_attempts
        self._window = window_seconds
        self._attempts: dict[str, list[float]] = {}

    def _in_window(self, timestamps: list[float], now: float) -> list[float]:
        return [ts for ts in timestamps if now - ts < self._window]

    def admit(self, phone: str) -> bool:
        """Record an attempt for *phone* and return ``True``, or ``False`` if over the cap."""
        now = self._clock()
        recent = self._in_window(self._attempts.get(phone, []), now)
        if len(recent) >= self._max_attempts:
            logger.warning("Rate limit hit for %s (%d in window)", phone, len(recent))
            return False
        recent.append(now)
        self._attempts[phone] = recent
        return True

    def purge(self, now: float | None = None) -> int:
        """Drop stale timestamps everywhere; remove keys left empty.

        Returns the number of keys removed.
        """
        if now is None:
            now = self._clock()
        removed = 0
        for phone in list(self._attempts):
            recent = self._in_window(self._attempts[phone], now)
            if recent:
                self._attempts[phone] = recent
            else:
                del self._attempts[phone]
                removed += 1
        return removed

    def attempts_for(self, phone: str) -> list[float]:
        """Timestamps currently held for *phone*, as of the last admit or purge.

        Read-only introspection; the simulator uses it to show used quota.
        """
        return list(self._attempts.get(phone, []))

    @property
    def active_count(self) -> int:
        return len(self._attempts)
