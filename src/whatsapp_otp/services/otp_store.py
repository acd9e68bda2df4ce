"""In-memory OTP store with expiry."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

OTP_MIN = 100_000
OTP_MAX = 999_999


def generate_code() -> str:
    """Return a uniformly random 6-digit code in ``100000..999999``."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


@dataclass(frozen=True)
class OTPRecord:
    """The active OTP for one phone number."""

    code: str
    expires_at: float
    created_at: float
    # Reserved for verification-attempt tracking; never incremented yet.
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class OTPStore:
    """Process-local OTP store keyed by normalized phone number.

    Each entry maps ``phone → OTPRecord``.  Issuing a code replaces whatever
    was there before.  ``lookup`` does not filter expired entries; they stay
    until :pymethod:`evict_expired` runs (normally from the reaper).
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, OTPRecord] = {}

    def issue(self, phone: str, code: str, ttl_seconds: int) -> OTPRecord:
        """Store *code* for *phone*, overwriting any previous record."""
        now = self._clock()
        record = OTPRecord(code=code, expires_at=now + ttl_seconds, created_at=now)
        self._store[phone] = record
        logger.info("OTP issued for %s (ttl %ss)", phone, ttl_seconds)
        return record

    def lookup(self, phone: str) -> OTPRecord | None:
        """Return the current record for *phone*, expired or not."""
        return self._store.get(phone)

    def evict_expired(self, now: float | None = None) -> int:
        """Drop every record whose ``expires_at`` is before *now*."""
        if now is None:
            now = self._clock()
        expired = [phone for phone, rec in self._store.items() if rec.expires_at < now]
        for phone in expired:
            del self._store[phone]
        return len(expired)

    @property
    def active_count(self) -> int:
        """Number of stored records (useful for monitoring)."""
        return len(self._store)
