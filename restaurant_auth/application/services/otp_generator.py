import math
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.otp_store import OtpPurpose, OtpRecord, OtpStore
from .otp_config import OtpConfig
from .rate_limiter import utc_now


def generate_code(length: int) -> str:
    """Uniform over [10^(L-1), 10^L - 1] from the OS CSPRNG."""
    low = 10 ** (length - 1)
    high = 10 ** length - 1
    return str(low + secrets.randbelow(high - low + 1)).zfill(length)


def expiry_description(expires_at: datetime, now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    minutes = math.ceil((expires_at - now).total_seconds() / 60)
    if minutes <= 0:
        return "expired"
    if minutes == 1:
        return "1 minute"
    return f"{minutes} minutes"


class OtpGenerator:
    def __init__(self, store: OtpStore, config: OtpConfig, clock: Callable[[], datetime] = utc_now,
                 code_factory: Callable[[int], str] = generate_code) -> None:
        self.store = store
        self.config = config
        self.clock = clock
        self.code_factory = code_factory

    def generate(self, phone: str, purpose: OtpPurpose = OtpPurpose.LOGIN) -> OtpRecord:
        code = self.code_factory(self.config.length)
        return self.materialize(phone, purpose, code, self.config.expiry_minutes)

    def materialize(self, phone: str, purpose: OtpPurpose, code: str, ttl_minutes: int) -> OtpRecord:
        # replaces any live record: at most one challenge per phone
        record = OtpRecord(
            phone=phone,
            code=code,
            purpose=purpose,
            expires_at=self.clock() + timedelta(minutes=ttl_minutes),
            attempts=0,
        )
        self.store.put(record)
        return record

    def expiry_description(self, expires_at: datetime) -> str:
        return expiry_description(expires_at, self.clock())
