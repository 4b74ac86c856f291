import math
from dataclasses import dataclass
from typing import Dict

from ..ports.message_sender import DeliveryChannel
from ..ports.otp_store import OtpPurpose

APP_NAME = "Restaurant Daily"

SMS_SEGMENT_LENGTH = 160
SMS_MAX_LENGTH = 3 * SMS_SEGMENT_LENGTH

_SMS_TEMPLATES: Dict[OtpPurpose, str] = {
    OtpPurpose.LOGIN: f"{APP_NAME}: Your login code is {{code}}. Valid for {{expiry}}. Don't share this code.",
    OtpPurpose.REGISTRATION: f"Welcome to {APP_NAME}! Your verification code is {{code}}. Valid for {{expiry}}.",
    OtpPurpose.PASSWORD_RESET: f"{APP_NAME}: Password reset code: {{code}}. Valid for {{expiry}}. Contact support if you didn't request this.",
}

_WHATSAPP_TEMPLATE = (
    f"*{APP_NAME}*\n\n"
    "Your verification code: *{code}*\n"
    "Expires in: {expiry}\n\n"
    "Keep this code secure and don't share it."
)

# INR per message, approximate
_ESTIMATED_COST: Dict[DeliveryChannel, Dict[str, float]] = {
    DeliveryChannel.WHATSAPP: {"IN": 0.35, "US": 0.50, "GB": 0.40, "default": 0.45},
    DeliveryChannel.SMS: {"IN": 0.50, "US": 0.75, "GB": 0.60, "default": 0.65},
}


@dataclass
class SmsLengthCheck:
    is_valid: bool
    length: int
    segments: int


def sms_content(code: str, expiry: str, purpose: OtpPurpose = OtpPurpose.LOGIN) -> str:
    return _SMS_TEMPLATES[purpose].format(code=code, expiry=expiry)


def whatsapp_content(code: str, expiry: str) -> str:
    return _WHATSAPP_TEMPLATE.format(code=code, expiry=expiry)


def validate_sms_length(content: str) -> SmsLengthCheck:
    length = len(content)
    return SmsLengthCheck(
        is_valid=length <= SMS_MAX_LENGTH,
        length=length,
        segments=math.ceil(length / SMS_SEGMENT_LENGTH),
    )


def estimated_cost(channel: DeliveryChannel, country: str) -> float:
    costs = _ESTIMATED_COST.get(channel, _ESTIMATED_COST[DeliveryChannel.SMS])
    return costs.get(country, costs["default"])
