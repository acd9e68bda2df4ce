"""OTP issuer — validates a request, rate-limits it, stores and delivers the code."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from whatsapp_otp.database.repository import ConsentRepository
from whatsapp_otp.errors import (
    ConsentError,
    PersistenceError,
    RateLimitError,
    ValidationError,
)
from whatsapp_otp.services.gateway import DeliveryGateway
from whatsapp_otp.services.otp_store import OTPStore, generate_code
from whatsapp_otp.services.phone import is_valid_phone, normalize_phone
from whatsapp_otp.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class IssueResult:
    """Outcome of a successful issuance."""

    phone: str
    delivery_id: str | None
    delivery_status: str | None
    expires_in_seconds: int


class OTPIssuer:
    """Runs the issuance pipeline for one request.

    Steps, each short-circuiting on failure
    ---------------------------------------
    1. Phone must be present.
    2. Normalize and validate it as an Indian mobile number.
    3. Consent must be given.
    4. The rate limiter must admit the phone.
    5. Generate a code and store it (overwriting any previous one).
    6. Deliver it through the gateway.  A delivery failure propagates; the
       stored code is left in place.
    7. Mark consent on the user record.  Failures here are logged only, the
       code has already gone out.
    """

    def __init__(
        self,
        otp_store: OTPStore,
        rate_limiter: RateLimiter,
        gateway: DeliveryGateway,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        expiry_minutes: int,
        clock: Callable[[], float] = time.time,
        code_generator: Callable[[], str] = generate_code,
    ) -> None:
        self._otp_store = otp_store
        self._rate_limiter = rate_limiter
        self._gateway = gateway
        self._session_factory = session_factory
        self._expiry_minutes = expiry_minutes
        self._clock = clock
        self._generate_code = code_generator

    async def issue_otp(self, raw_phone: str | None, consent_given: object) -> IssueResult:
        """Issue an OTP for *raw_phone* and return delivery details.

        Raises ``ValidationError``, ``RateLimitError`` or ``DeliveryError``.
        """
        if not raw_phone:
            raise ValidationError("Phone number is required")

        phone = normalize_phone(raw_phone)
        if not is_valid_phone(phone):
            raise ValidationError("Invalid Indian phone number")

        if not consent_given:
            raise ConsentError("User consent is required")

        if not self._rate_limiter.admit(phone):
            raise RateLimitError("Too many OTP requests. Try again in 1 hour.")

        code = self._generate_code()
        record = self._otp_store.issue(phone, code, self._expiry_minutes * 60)

        result = await self._gateway.send_otp(phone, code, self._expiry_minutes)
        logger.info("OTP for %s delivered via %s (%s)", phone, self._gateway.name, result.status)

        await self._record_consent(phone)

        return IssueResult(
            phone=phone,
            delivery_id=result.delivery_id,
            delivery_status=result.status,
            expires_in_seconds=math.floor(record.expires_at - self._clock()),
        )

    async def _record_consent(self, phone: str) -> None:
        try:
            async with self._session_factory() as session:
                await ConsentRepository(session).upsert(phone, terms_accepted=True)
                await session.commit()
        except (PersistenceError, SQLAlchemyError):
            logger.exception("Consent record for %s was not saved", phone)
