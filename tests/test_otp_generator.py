from datetime import timedelta

import pytest

from restaurant_auth.application.ports.otp_store import OtpPurpose
from restaurant_auth.application.services.otp_config import OtpConfig
from restaurant_auth.application.services.otp_generator import OtpGenerator, expiry_description, generate_code


@pytest.mark.parametrize("length", [4, 6, 8, 10])
def test_generate_code_length_and_range(length):
    for _ in range(200):
        code = generate_code(length)
        assert len(code) == length
        assert code.isdigit()
        assert code[0] != "0"


def test_generate_code_is_not_constant():
    assert len({generate_code(6) for _ in range(50)}) > 1


def test_expiry_description(clock):
    now = clock()
    assert expiry_description(now + timedelta(minutes=5), now) == "5 minutes"
    assert expiry_description(now + timedelta(seconds=61), now) == "2 minutes"
    assert expiry_description(now + timedelta(seconds=30), now) == "1 minute"
    assert expiry_description(now, now) == "expired"
    assert expiry_description(now - timedelta(minutes=1), now) == "expired"


def test_generate_stores_fresh_record(clock, otp_store):
    gen = OtpGenerator(otp_store, OtpConfig(expiry_minutes=5), clock, lambda length: "482913")
    record = gen.generate("+919876543210", OtpPurpose.REGISTRATION)

    assert record.code == "482913"
    assert record.attempts == 0
    assert record.purpose is OtpPurpose.REGISTRATION
    assert record.expires_at == clock() + timedelta(minutes=5)
    assert otp_store.get("+919876543210") == record
    assert gen.expiry_description(record.expires_at) == "5 minutes"


def test_new_record_replaces_previous(clock, otp_store):
    codes = iter(["111111", "222222"])
    gen = OtpGenerator(otp_store, OtpConfig(), clock, lambda length: next(codes))
    first = gen.generate("+919876543210")
    first.attempts = 2
    otp_store.put(first)

    gen.generate("+919876543210")

    stored = otp_store.get("+919876543210")
    assert stored.code == "222222"
    assert stored.attempts == 0
    assert len(otp_store) == 1


def test_materialize_uses_given_code_and_ttl(clock, otp_store):
    gen = OtpGenerator(otp_store, OtpConfig(), clock)
    record = gen.materialize("+919876543210", OtpPurpose.LOGIN, "123456", 30)
    assert record.code == "123456"
    assert record.expires_at == clock() + timedelta(minutes=30)
