"""Delivery gateways — send the OTP message to the user's WhatsApp.

``GupshupGateway`` talks to the Gupshup template-message API; the
``ConsoleGateway`` only logs the code and is meant for local development.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from whatsapp_otp.config import Settings
from whatsapp_otp.errors import (
    DeliveryAuthError,
    DeliveryBadRequestError,
    DeliveryConfigError,
    DeliveryError,
    NoResponseError,
    ProviderRateLimitError,
    UnexpectedResponseError,
)
from whatsapp_otp.services.phone import COUNTRY_CODE

logger = logging.getLogger(__name__)

ACCEPTED_STATUSES = {"submitted", "queued"}


@dataclass
class DeliveryResult:
    """Value object returned by a gateway after the provider accepts a message."""

    delivery_id: str | None
    status: str | None


class DeliveryGateway(ABC):
    """Abstract interface every delivery provider must implement."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (used in logs and health output)."""

    @abstractmethod
    async def send_otp(
        self, phone: str, code: str, expiry_minutes: int
    ) -> DeliveryResult:
        """Deliver *code* to *phone*.

        Parameters
        ----------
        phone:
            Normalized 10-digit national number.
        code:
            The 6-digit OTP.
        expiry_minutes:
            Shown to the user in the message template.

        Raises a ``DeliveryError`` subclass on failure.
        """


class GupshupGateway(DeliveryGateway):
    """Async HTTP client for the Gupshup WhatsApp template-message API."""

    path = "/sm/api/v1/template/msg"

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def name(self) -> str:
        return "gupshup"

    @property
    def configured(self) -> bool:
        s = self._settings
        return bool(s.gupshup_api_key and s.gupshup_sender and s.gupshup_template_name)

    @staticmethod
    def format_destination(phone: str) -> str:
        """Prefix the country code onto a 10-digit national number."""
        return f"{COUNTRY_CODE}{phone}" if len(phone) == 10 else phone

    async def send_otp(
        self, phone: str, code: str, expiry_minutes: int
    ) -> DeliveryResult:
        if not self.configured:
            raise DeliveryConfigError("Gupshup credentials or template name missing")

        s = self._settings
        url = f"{s.gupshup_base_url.rstrip('/')}{self.path}"
        payload = {
            "channel": "whatsapp",
            "source": s.gupshup_sender,
            "destination": self.format_destination(phone),
            "src.name": s.gupshup_app_name,
            "template": s.gupshup_template_name,
            "template.params": f"{code}|{expiry_minutes}",
        }
        headers = {"apikey": s.gupshup_api_key}

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=s.gupshup_timeout_seconds
            ) as client:
                resp = await client.post(url, data=payload, headers=headers)
        except httpx.RequestError as exc:
            logger.error("Gupshup request error for %s: %s", phone, exc)
            raise NoResponseError("No response from Gupshup API") from exc

        if resp.is_success:
            return self._parse_success(resp)

        logger.error("Gupshup send failed: %s %s", resp.status_code, resp.text)
        if resp.status_code == 401:
            raise DeliveryAuthError("Invalid Gupshup API key")
        if resp.status_code == 400:
            raise DeliveryBadRequestError(
                self._json(resp).get("message") or "Invalid parameters"
            )
        if resp.status_code == 429:
            raise ProviderRateLimitError("Rate limit exceeded on Gupshup API")
        raise DeliveryError(f"Gupshup error: HTTP {resp.status_code}")

    # ── Private helpers ──────────────────────────────────

    @staticmethod
    def _json(resp: httpx.Response) -> dict:
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _parse_success(self, resp: httpx.Response) -> DeliveryResult:
        data = self._json(resp)
        status = data.get("status")
        message_id = data.get("messageId")
        if status in ACCEPTED_STATUSES or message_id:
            logger.info("Gupshup accepted message %s (%s)", message_id, status)
            return DeliveryResult(delivery_id=message_id, status=status)
        raise UnexpectedResponseError(data or resp.text)


class ConsoleGateway(DeliveryGateway):
    """Logs the OTP instead of sending it."""

    @property
    def name(self) -> str:
        return "console"

    async def send_otp(
        self, phone: str, code: str, expiry_minutes: int
    ) -> DeliveryResult:
        delivery_id = f"console-{uuid.uuid4().hex[:12]}"
        logger.info(
            "📱 OTP for %s: %s (valid %d min, id %s)", phone, code, expiry_minutes, delivery_id
        )
        return DeliveryResult(delivery_id=delivery_id, status="submitted")


def build_gateway(settings: Settings) -> DeliveryGateway:
    """Pick the gateway named by ``settings.otp_provider``."""
    if settings.otp_provider == "console":
        return ConsoleGateway()
    if settings.otp_provider != "gupshup":
        logger.warning("Unknown OTP provider %r, using gupshup", settings.otp_provider)
    return GupshupGateway(settings)
