from datetime import datetime, timezone
from typing import Callable

from ..ports.rate_window_store import RateWindowStore
from .otp_config import OtpConfig

WINDOW_SECONDS = 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OtpRateLimiter:
    """Per-phone sliding window over the trailing hour of issuance attempts."""

    def __init__(self, store: RateWindowStore, config: OtpConfig, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self.config = config
        self.clock = clock

    def _window_size(self, phone: str) -> int:
        cutoff = self.clock().timestamp() - WINDOW_SECONDS
        return self.store.count_since(phone, cutoff)

    def is_rate_limited(self, phone: str) -> bool:
        return self._window_size(phone) >= self.config.rate_limit_per_hour

    def record_attempt(self, phone: str) -> None:
        self.store.append(phone, self.clock().timestamp())

    def remaining_attempts(self, phone: str) -> int:
        return max(0, self.config.rate_limit_per_hour - self._window_size(phone))

    def clear(self, phone: str) -> None:
        self.store.clear(phone)

    def purge_stale(self) -> int:
        return self.store.purge_before(self.clock().timestamp() - WINDOW_SECONDS)
