"""Tests for Settings parsing."""

import pytest

from whatsapp_otp.config import DEFAULT_OTP_EXPIRY_MINUTES, Settings


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10", 10),
        (7, 7),
        ("abc", DEFAULT_OTP_EXPIRY_MINUTES),
        ("", DEFAULT_OTP_EXPIRY_MINUTES),
        ("0", DEFAULT_OTP_EXPIRY_MINUTES),
        ("-3", DEFAULT_OTP_EXPIRY_MINUTES),
    ],
)
def test_otp_expiry_minutes_fallback(raw, expected):
    settings = Settings(_env_file=None, otp_expiry_minutes=raw)
    assert settings.otp_expiry_minutes == expected
    assert settings.otp_ttl_seconds == expected * 60


def test_junk_expiry_from_environment(monkeypatch):
    monkeypatch.setenv("OTP_EXPIRY_MINUTES", "five")
    assert Settings(_env_file=None).otp_expiry_minutes == DEFAULT_OTP_EXPIRY_MINUTES
