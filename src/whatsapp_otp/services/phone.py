"""Indian mobile number normalization and validation."""

import re

_NON_DIGITS = re.compile(r"\D")
_MOBILE = re.compile(r"^[6-9]\d{9}$")

COUNTRY_CODE = "91"


def normalize_phone(raw: str) -> str:
    """Strip everything but digits, then one leading ``91`` country code.

    ``"+91 98765-43210"`` → ``"9876543210"``
    """
    digits = _NON_DIGITS.sub("", raw)
    if digits.startswith(COUNTRY_CODE):
        digits = digits[len(COUNTRY_CODE):]
    return digits


def is_valid_phone(phone: str) -> bool:
    """10 digits, starting with 6, 7, 8 or 9."""
    return bool(_MOBILE.match(phone))
