"""Tests for the in-memory OTPStore and code generation."""

from unittest.mock import patch

from whatsapp_otp.services.otp_store import OTPStore, generate_code

PHONE = "9876543210"


def test_issue_records_timestamps(clock):
    store = OTPStore(clock=clock)
    record = store.issue(PHONE, "123456", 300)

    assert record.code == "123456"
    assert record.created_at == clock.now
    assert record.expires_at == clock.now + 300
    assert record.attempts == 0
    assert store.lookup(PHONE) == record


def test_reissue_overwrites(clock):
    store = OTPStore(clock=clock)
    store.issue(PHONE, "111111", 300)
    clock.advance(10)
    store.issue(PHONE, "222222", 300)

    assert store.lookup(PHONE).code == "222222"
    assert store.active_count == 1


def test_lookup_missing_returns_none(clock):
    assert OTPStore(clock=clock).lookup(PHONE) is None


def test_lookup_does_not_filter_expired(clock):
    store = OTPStore(clock=clock)
    store.issue(PHONE, "123456", 300)
    clock.advance(301)

    record = store.lookup(PHONE)
    assert record is not None
    assert record.is_expired(clock.now)


def test_evict_expired_removes_only_past_records(clock):
    store = OTPStore(clock=clock)
    store.issue("9000000001", "111111", 60)
    store.issue("9000000002", "222222", 300)
    store.issue("9000000003", "333333", 120)

    removed = store.evict_expired(clock.now + 120)

    # expires_at == now is kept; only strictly earlier records go
    assert removed == 1
    assert store.lookup("9000000001") is None
    assert store.lookup("9000000002") is not None
    assert store.lookup("9000000003") is not None


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_generate_code_bounds():
    with patch("whatsapp_otp.services.otp_store.secrets.randbelow", return_value=0):
        assert generate_code() == "100000"
    with patch("whatsapp_otp.services.otp_store.secrets.randbelow", return_value=899_999):
        assert generate_code() == "999999"
