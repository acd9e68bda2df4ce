"""Tests for phone normalization and validation."""

import pytest

from whatsapp_otp.services.phone import is_valid_phone, normalize_phone


@pytest.mark.parametrize(
    "raw",
    ["+91 98765-43210", "9876543210", "919876543210", "(+91) 98765 43210"],
)
def test_normalize_variants(raw):
    assert normalize_phone(raw) == "9876543210"


def test_normalize_strips_country_code_once():
    assert normalize_phone("91919876543") == "919876543"


@pytest.mark.parametrize("phone", ["9876543210", "6000000000", "7123456789", "8999999999"])
def test_valid_numbers(phone):
    assert is_valid_phone(phone)


@pytest.mark.parametrize(
    "phone",
    [
        "987654321",     # 9 digits
        "98765432101",   # 11 digits
        "0876543210",
        "1234567890",
        "5876543210",
        "",
    ],
)
def test_invalid_numbers(phone):
    assert not is_valid_phone(phone)
