"""Tests for the background Reaper."""

import asyncio

import pytest

from whatsapp_otp.services.otp_store import OTPStore
from whatsapp_otp.services.rate_limiter import WINDOW_SECONDS, RateLimiter
from whatsapp_otp.services.reaper import Reaper


def _populate(clock):
    store = OTPStore(clock=clock)
    limiter = RateLimiter(clock=clock)
    store.issue("9000000001", "111111", 60)
    store.issue("9000000002", "222222", 7200)
    limiter.admit("9000000001")
    clock.advance(WINDOW_SECONDS - 1)
    limiter.admit("9000000002")
    clock.advance(2)
    return store, limiter


def test_sweep_evicts_both_stores(clock):
    store, limiter = _populate(clock)
    reaper = Reaper(store, limiter, clock=clock)

    reaper.sweep()

    assert store.lookup("9000000001") is None
    assert store.lookup("9000000002") is not None
    assert limiter.attempts_for("9000000001") == []
    assert len(limiter.attempts_for("9000000002")) == 1


def test_sweep_is_idempotent(clock):
    store, limiter = _populate(clock)
    reaper = Reaper(store, limiter, clock=clock)

    reaper.sweep()
    reaper.sweep()

    assert store.active_count == 1
    assert limiter.active_count == 1


@pytest.mark.asyncio
async def test_start_runs_periodically_and_stop_cancels(clock):
    store, limiter = _populate(clock)
    reaper = Reaper(store, limiter, interval=0.01, clock=clock)

    await reaper.start()
    assert reaper.running
    await asyncio.sleep(0.05)
    await reaper.stop()

    assert not reaper.running
    assert store.active_count == 1
    assert limiter.active_count == 1


@pytest.mark.asyncio
async def test_failed_sweep_does_not_kill_loop(clock, monkeypatch):
    store, limiter = _populate(clock)
    reaper = Reaper(store, limiter, interval=0.01, clock=clock)
    calls = []

    def flaky_purge(now=None):
        calls.append(now)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return 0

    monkeypatch.setattr(limiter, "purge", flaky_purge)

    await reaper.start()
    await asyncio.sleep(0.1)
    assert reaper.running
    await reaper.stop()

    assert len(calls) >= 2
