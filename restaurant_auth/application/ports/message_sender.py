from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .otp_store import OtpPurpose


class DeliveryChannel(str, Enum):
    WHATSAPP = "whatsapp"
    SMS = "sms"
    NONE = "none"


@dataclass
class DeliveryResult:
    success: bool
    channel: DeliveryChannel
    message_sid: Optional[str] = None
    status: Optional[str] = None
    cost: Optional[float] = None
    error: Optional[str] = None


@dataclass
class ConnectionStatus:
    success: bool
    account_sid: Optional[str] = None
    error: Optional[str] = None


class MessageSender(Protocol):
    def send(self, phone: str, code: str, expiry_text: str, purpose: OtpPurpose, channel: DeliveryChannel) -> DeliveryResult:
        ...

    def test_connection(self) -> ConnectionStatus:
        ...

    def send_test_message(self, phone: str, channel: DeliveryChannel) -> DeliveryResult:
        ...
