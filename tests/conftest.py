"""Shared test fixtures — controllable clock, fake gateway, in-memory DB."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from whatsapp_otp.models.user import Base
from whatsapp_otp.services.gateway import DeliveryGateway, DeliveryResult


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway(DeliveryGateway):
    """Records every send; raises ``error`` instead when it is set."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, int]] = []
        self.error: Exception | None = None
        self.result = DeliveryResult(delivery_id="msg-123", status="submitted")

    @property
    def name(self) -> str:
        return "fake"

    async def send_otp(self, phone: str, code: str, expiry_minutes: int) -> DeliveryResult:
        self.calls.append((phone, code, expiry_minutes))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database with tables created."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()
