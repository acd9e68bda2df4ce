"""Background reaper — periodically evicts expired OTPs and stale rate-limit entries."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from whatsapp_otp.services.otp_store import OTPStore
from whatsapp_otp.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

REAPER_INTERVAL_SECONDS = 5 * 60


class Reaper:
    """Owns one asyncio task that sweeps both stores every *interval* seconds.

    Started and stopped by the application lifespan.
    """

    def __init__(
        self,
        otp_store: OTPStore,
        rate_limiter: RateLimiter,
        *,
        interval: float = REAPER_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._otp_store = otp_store
        self._rate_limiter = rate_limiter
        self._interval = interval
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> None:
        """Run one eviction pass over both stores."""
        now = self._clock()
        otps = self._otp_store.evict_expired(now)
        keys = self._rate_limiter.purge(now)
        logger.debug("Reaper evicted %d OTPs and %d rate-limit keys", otps, keys)

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="otp-reaper")
        logger.info("Reaper started (every %ds)", self._interval)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("Reaper stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Reaper sweep failed, will retry next period")
