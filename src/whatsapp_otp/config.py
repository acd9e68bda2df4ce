"""WhatsApp OTP Service — configuration loaded from environment."""

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_OTP_EXPIRY_MINUTES = 5


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database (consent records) ────────────────────────
    database_url: str = "sqlite+aiosqlite:///./whatsapp_otp.db"

    # ── Gupshup WhatsApp API ──────────────────────────────
    gupshup_api_key: str = ""
    gupshup_sender: str = ""
    gupshup_app_name: str = "GupshupApp"
    gupshup_template_name: str = "otp_verification_code"
    gupshup_base_url: str = "https://api.gupshup.io"
    gupshup_timeout_seconds: float = 15.0

    # ── OTP ───────────────────────────────────────────────
    otp_provider: str = "gupshup"  # gupshup | console
    otp_expiry_minutes: int = DEFAULT_OTP_EXPIRY_MINUTES

    # ── HTTP ──────────────────────────────────────────────
    cors_origin: str = "*"
    host: str = "0.0.0.0"
    port: int = 3001

    # ── App ───────────────────────────────────────────────
    app_name: str = "WhatsApp OTP Service"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("otp_expiry_minutes", mode="before")
    @classmethod
    def _fallback_expiry(cls, value: object) -> int:
        """Non-numeric, empty or non-positive values fall back to the default."""
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return DEFAULT_OTP_EXPIRY_MINUTES
        return minutes if minutes > 0 else DEFAULT_OTP_EXPIRY_MINUTES

    @property
    def otp_ttl_seconds(self) -> int:
        return self.otp_expiry_minutes * 60


# Singleton settings instance
settings = Settings()
