from datetime import datetime, timedelta, timezone

import pytest

from restaurant_auth.application.services.demo_policy import DemoPolicy
from restaurant_auth.application.services.otp_config import OtpConfig
from restaurant_auth.application.services.otp_engine import OtpEngine
from restaurant_auth.infrastructure.otp.memory_otp_store import InMemoryOtpStore
from restaurant_auth.infrastructure.rate_limit.memory_rate_window import InMemoryRateWindowStore


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class SequenceCodes:
    """Deterministic code factory: hands out the given codes in order."""

    def __init__(self, *codes):
        self.codes = list(codes)
        self.calls = 0

    def __call__(self, length):
        code = self.codes[self.calls % len(self.codes)]
        self.calls += 1
        return code


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return OtpConfig()


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def rate_store():
    return InMemoryRateWindowStore()


@pytest.fixture
def make_engine(clock, otp_store, rate_store):
    def _make(config=None, codes=("482913",), demo_enabled=True, **kwargs):
        return OtpEngine(
            config=config or OtpConfig(),
            otp_store=otp_store,
            rate_store=rate_store,
            demo_policy=DemoPolicy(enabled=demo_enabled),
            clock=clock,
            code_factory=SequenceCodes(*codes),
            **kwargs,
        )
    return _make
