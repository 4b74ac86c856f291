import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..ports.otp_store import OtpRecord, OtpStore
from .otp_config import OtpConfig
from .rate_limiter import utc_now


class VerificationStatus(str, Enum):
    VALID = "VALID"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    ATTEMPTS_EXCEEDED = "ATTEMPTS_EXCEEDED"
    WRONG_CODE = "WRONG_CODE"
    INVALID_FORMAT = "INVALID_OTP_FORMAT"
    INVALID_PHONE = "INVALID_PHONE"


@dataclass
class VerificationResult:
    status: VerificationStatus
    attempts_remaining: Optional[int] = None
    record: Optional[OtpRecord] = None

    @property
    def is_valid(self) -> bool:
        return self.status is VerificationStatus.VALID


def is_valid_code_format(code: Optional[str], length: int) -> bool:
    return bool(code) and re.fullmatch(rf"[0-9]{{{length}}}", code) is not None


class OtpVerifier:
    """Consumes a (phone, code) pair against the store.

    Active -> Consumed | Expired | Exhausted; every terminal state deletes the
    record, so a second submission of a correct code yields NOT_FOUND.
    Callers must hold the phone's lock around `verify`.
    """

    def __init__(self, store: OtpStore, config: OtpConfig, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self.config = config
        self.clock = clock

    def verify(self, phone: str, submitted_code: str) -> VerificationResult:
        record = self.store.get(phone)
        if record is None:
            return VerificationResult(VerificationStatus.NOT_FOUND)

        max_attempts = self.config.max_attempts
        if record.attempts >= max_attempts:
            self.store.delete(phone)
            return VerificationResult(VerificationStatus.ATTEMPTS_EXCEEDED, attempts_remaining=0)

        if self.clock() > record.expires_at:
            self.store.delete(phone)
            return VerificationResult(VerificationStatus.EXPIRED)

        record.attempts += 1

        if secrets.compare_digest(submitted_code.encode(), record.code.encode()):
            self.store.delete(phone)
            return VerificationResult(VerificationStatus.VALID, record=record)

        if record.attempts >= max_attempts:
            self.store.delete(phone)
            return VerificationResult(VerificationStatus.ATTEMPTS_EXCEEDED, attempts_remaining=0)

        self.store.put(record)
        return VerificationResult(VerificationStatus.WRONG_CODE, attempts_remaining=max_attempts - record.attempts)
