"""
Phone canonicalization. Every OTP operation is keyed by the E.164 string
produced here, so the functions below are pure and deterministic.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat, PhoneNumberType

from ..ports.message_sender import DeliveryChannel

SUPPORTED_COUNTRIES = ("IN", "US", "GB", "AU")
DEFAULT_COUNTRY = "IN"

_MOBILE_TYPES = (PhoneNumberType.MOBILE, PhoneNumberType.FIXED_LINE_OR_MOBILE)


class PhoneErrorCode(str, Enum):
    EMPTY_INPUT = "EMPTY_INPUT"
    MALFORMED = "MALFORMED"
    UNSUPPORTED_COUNTRY = "UNSUPPORTED_COUNTRY"


_ERROR_MESSAGES = {
    PhoneErrorCode.EMPTY_INPUT: "Phone number is required",
    PhoneErrorCode.MALFORMED: "Phone number is not valid",
    PhoneErrorCode.UNSUPPORTED_COUNTRY: "Phone numbers from this country are not supported yet",
}


class PhoneValidationError(ValueError):
    def __init__(self, reason: PhoneErrorCode, country: Optional[str] = None):
        message = _ERROR_MESSAGES[reason]
        if reason is PhoneErrorCode.UNSUPPORTED_COUNTRY and country:
            message = f"Phone numbers from {country} are not supported yet"
        super().__init__(message)
        self.reason = reason
        self.country = country


@dataclass(frozen=True)
class PhoneIdentity:
    e164: str
    country: str
    national_number: str

    def __str__(self) -> str:
        return self.e164


def clean_phone_input(raw: Optional[str]) -> str:
    """Keep digits plus a single leading '+'."""
    stripped = (raw or "").strip()
    digits = re.sub(r"\D", "", stripped)
    if stripped.startswith("+") and digits:
        return "+" + digits
    return digits


def normalize_phone(
    raw: Optional[str],
    default_country: str = DEFAULT_COUNTRY,
    supported_countries: Iterable[str] = SUPPORTED_COUNTRIES,
) -> PhoneIdentity:
    cleaned = clean_phone_input(raw)
    if not cleaned:
        raise PhoneValidationError(PhoneErrorCode.EMPTY_INPUT)

    try:
        parsed = phonenumbers.parse(cleaned, (default_country or DEFAULT_COUNTRY).upper())
    except NumberParseException:
        raise PhoneValidationError(PhoneErrorCode.MALFORMED)

    if not phonenumbers.is_valid_number(parsed):
        raise PhoneValidationError(PhoneErrorCode.MALFORMED)

    country = phonenumbers.region_code_for_number(parsed)
    if country not in {c.upper() for c in supported_countries}:
        raise PhoneValidationError(PhoneErrorCode.UNSUPPORTED_COUNTRY, country=country)

    return PhoneIdentity(
        e164=phonenumbers.format_number(parsed, PhoneNumberFormat.E164),
        country=country,
        national_number=str(parsed.national_number),
    )


def _parse_e164(phone: str):
    try:
        return phonenumbers.parse(phone, None)
    except NumberParseException:
        return None


def format_for_display(phone: str) -> str:
    """International grouped format, e.g. '+91 98765 43210'. Unparseable input is returned as is."""
    parsed = _parse_e164(phone)
    if parsed is None:
        return phone
    return phonenumbers.format_number(parsed, PhoneNumberFormat.INTERNATIONAL)


def is_mobile(phone: str) -> bool:
    parsed = _parse_e164(phone)
    if parsed is None or not phonenumbers.is_valid_number(parsed):
        return False
    return phonenumbers.number_type(parsed) in _MOBILE_TYPES


def preferred_channel(phone: str) -> DeliveryChannel:
    # landlines cannot receive WhatsApp and SMS is opt-in, so they get no channel
    if is_mobile(phone):
        return DeliveryChannel.WHATSAPP
    return DeliveryChannel.NONE


def to_whatsapp_address(phone: str) -> str:
    return f"whatsapp:{phone}"


def mask_phone(phone: str, visible_digits: int = 4) -> str:
    if not phone:
        return ""
    if len(phone) <= visible_digits:
        return phone
    return "*" * (len(phone) - visible_digits) + phone[-visible_digits:]
