from datetime import timedelta

import pytest

from restaurant_auth.application.ports.otp_store import OtpPurpose, OtpRecord
from restaurant_auth.application.services.otp_config import OtpConfig
from restaurant_auth.application.services.otp_verifier import OtpVerifier, VerificationStatus, is_valid_code_format


PHONE = "+919876543210"


@pytest.fixture
def verifier(otp_store, clock):
    return OtpVerifier(otp_store, OtpConfig(max_attempts=3), clock)


def _seed(store, clock, code="482913", attempts=0, minutes=5):
    store.put(OtpRecord(PHONE, code, OtpPurpose.LOGIN, clock() + timedelta(minutes=minutes), attempts))


@pytest.mark.parametrize("code,ok", [
    ("482913", True),
    ("48291", False),
    ("4829130", False),
    ("48a913", False),
    ("", False),
    (None, False),
    ("٤٨٢٩١٣", False),
])
def test_code_format(code, ok):
    assert is_valid_code_format(code, 6) is ok


def test_no_record(verifier):
    assert verifier.verify(PHONE, "482913").status is VerificationStatus.NOT_FOUND


def test_correct_code_consumes_record(verifier, otp_store, clock):
    _seed(otp_store, clock)
    result = verifier.verify(PHONE, "482913")
    assert result.is_valid
    assert result.record.code == "482913"
    assert otp_store.get(PHONE) is None
    # single use
    assert verifier.verify(PHONE, "482913").status is VerificationStatus.NOT_FOUND


def test_wrong_codes_then_exhausted(verifier, otp_store, clock):
    _seed(otp_store, clock)

    first = verifier.verify(PHONE, "000000")
    assert first.status is VerificationStatus.WRONG_CODE
    assert first.attempts_remaining == 2
    assert otp_store.get(PHONE).attempts == 1

    second = verifier.verify(PHONE, "000000")
    assert second.attempts_remaining == 1

    third = verifier.verify(PHONE, "000000")
    assert third.status is VerificationStatus.ATTEMPTS_EXCEEDED
    assert third.attempts_remaining == 0
    assert otp_store.get(PHONE) is None


def test_correct_code_on_last_attempt_succeeds(verifier, otp_store, clock):
    _seed(otp_store, clock, attempts=2)
    assert verifier.verify(PHONE, "482913").is_valid


def test_record_already_at_max_attempts(verifier, otp_store, clock):
    _seed(otp_store, clock, attempts=3)
    assert verifier.verify(PHONE, "482913").status is VerificationStatus.ATTEMPTS_EXCEEDED
    assert otp_store.get(PHONE) is None


def test_expired_record_is_deleted(verifier, otp_store, clock):
    _seed(otp_store, clock)
    clock.advance(minutes=5, seconds=1)
    assert verifier.verify(PHONE, "482913").status is VerificationStatus.EXPIRED
    assert otp_store.get(PHONE) is None
    assert verifier.verify(PHONE, "482913").status is VerificationStatus.NOT_FOUND


def test_exact_expiry_instant_is_still_valid(verifier, otp_store, clock):
    _seed(otp_store, clock)
    clock.advance(minutes=5)
    assert verifier.verify(PHONE, "482913").is_valid


def test_expiry_checked_before_code(verifier, otp_store, clock):
    _seed(otp_store, clock)
    clock.advance(minutes=6)
    assert verifier.verify(PHONE, "000000").status is VerificationStatus.EXPIRED
