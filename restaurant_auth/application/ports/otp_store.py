from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol


class OtpPurpose(str, Enum):
    LOGIN = "login"
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


@dataclass
class OtpRecord:
    """One outstanding challenge for a phone. Only `attempts` ever changes."""
    phone: str
    code: str
    purpose: OtpPurpose
    expires_at: datetime
    attempts: int = 0


class OtpStore(Protocol):
    def get(self, phone: str) -> Optional[OtpRecord]:
        ...

    def put(self, record: OtpRecord) -> None:
        ...

    def delete(self, phone: str) -> None:
        ...

    def purge_expired(self, now: datetime) -> int:
        ...
