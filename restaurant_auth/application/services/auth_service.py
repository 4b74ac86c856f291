import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ...exceptions import APIException
from ..ports.audit_logger import AuditLogger
from ..ports.message_sender import DeliveryChannel, DeliveryResult, MessageSender
from ..ports.otp_store import OtpPurpose
from ..ports.token_issuer import TokenIssuer
from .otp_engine import IssueStatus, OtpEngine
from .otp_verifier import VerificationStatus
from .phone_normalizer import PhoneValidationError, format_for_display, mask_phone, preferred_channel

logger = logging.getLogger(__name__)

RESEND_COOLDOWN_TEXT = "1 minute"

_VERIFY_FAILURES = {
    VerificationStatus.NOT_FOUND: (400, "No verification code found. Please request a new one."),
    VerificationStatus.EXPIRED: (400, "Verification code has expired. Please request a new one."),
    VerificationStatus.ATTEMPTS_EXCEEDED: (429, "Too many failed attempts. Please request a new code."),
}


def _phone_error(e: PhoneValidationError) -> APIException:
    return APIException(400, e.reason.value, str(e))


@dataclass
class RequestOtpOutcome:
    phone: str
    display_phone: str
    method: DeliveryChannel
    expires_in: str
    is_demo: bool = False
    demo_code: Optional[str] = None
    message_sid: Optional[str] = None


@dataclass
class VerifyOtpOutcome:
    token: str
    user: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthService:
    """HTTP-facing use cases: the engine decides, this class delivers, audits and maps to errors."""
    engine: OtpEngine
    sender: MessageSender
    token_issuer: TokenIssuer
    audit: AuditLogger
    expose_demo_codes: bool = False
    sms_enabled: bool = False

    def _resolve_channel(self, phone: str, preferred: str) -> DeliveryChannel:
        if preferred == DeliveryChannel.WHATSAPP.value:
            return DeliveryChannel.WHATSAPP
        if preferred == DeliveryChannel.SMS.value:
            return DeliveryChannel.SMS
        return preferred_channel(phone)

    def _deliver(self, phone: str, code: str, expires_in: str, purpose: OtpPurpose,
                 channel: DeliveryChannel, auto: bool) -> DeliveryResult:
        if channel is DeliveryChannel.SMS and not self.sms_enabled:
            return DeliveryResult(False, DeliveryChannel.SMS, error="SMS delivery is not enabled. Use WhatsApp instead.")
        result = self.sender.send(phone, code, expires_in, purpose, channel)
        if not result.success and auto and channel is DeliveryChannel.WHATSAPP and self.sms_enabled:
            logger.warning(f"WhatsApp delivery to {mask_phone(phone)} failed, falling back to SMS")
            result = self.sender.send(phone, code, expires_in, purpose, DeliveryChannel.SMS)
        return result

    def request_otp(self, phone_number: str, purpose: OtpPurpose = OtpPurpose.LOGIN,
                    preferred_method: str = "auto", country_hint: Optional[str] = None,
                    ip_address: Optional[str] = None) -> RequestOtpOutcome:
        request_id = str(uuid.uuid4())

        # a phone with no viable channel must not mint a code or count against the hourly limit
        try:
            identity = self.engine.normalize(phone_number, country_hint)
        except PhoneValidationError as e:
            raise _phone_error(e)
        channel = self._resolve_channel(identity.e164, preferred_method)
        is_demo = self.engine.demo_policy.lookup(identity.e164) is not None
        if channel is DeliveryChannel.NONE and not is_demo:
            raise APIException(400, "NO_CHANNEL", "Phone number cannot receive messages")

        result = self.engine.request_challenge(phone_number, purpose, country_hint)
        if result.status is IssueStatus.INVALID_PHONE:
            raise _phone_error(result.phone_error)

        phone = result.phone.e164
        if result.status is IssueStatus.RATE_LIMITED:
            self.audit.log("otp_rate_limited", phone, request_id=request_id, ip_address=ip_address, success=False)
            raise APIException(
                429,
                "RATE_LIMITED",
                "Too many OTP requests. Please try again later.",
                remainingAttempts=result.remaining_attempts or 0,
                retryAfter="1 hour",
            )

        display_phone = format_for_display(phone)
        if result.status is IssueStatus.DEMO_ISSUED:
            self.audit.log("otp_requested", phone, request_id=request_id, ip_address=ip_address,
                           details={"purpose": purpose.value, "demo": True})
            return RequestOtpOutcome(
                phone=phone,
                display_phone=display_phone,
                method=channel if channel is not DeliveryChannel.NONE else DeliveryChannel.WHATSAPP,
                expires_in=result.expires_in,
                is_demo=True,
                demo_code=result.record.code if self.expose_demo_codes else None,
            )

        delivery = self._deliver(phone, result.record.code, result.expires_in, purpose, channel,
                                 auto=preferred_method == "auto")
        if not delivery.success:
            # the record stays valid: delivery failure does not revoke the challenge
            self.audit.log("otp_delivery_failed", phone, request_id=request_id, ip_address=ip_address,
                           success=False, details={"channel": delivery.channel.value, "error": delivery.error})
            raise APIException(500, "DELIVERY_FAILED", "Failed to send OTP", details=delivery.error)

        self.audit.log("otp_requested", phone, request_id=request_id, ip_address=ip_address,
                       details={"purpose": purpose.value, "channel": delivery.channel.value, "sid": delivery.message_sid})
        return RequestOtpOutcome(
            phone=phone,
            display_phone=display_phone,
            method=delivery.channel,
            expires_in=result.expires_in,
            message_sid=delivery.message_sid,
        )

    def verify_otp(self, phone_number: str, otp_code: str, country_hint: Optional[str] = None,
                   ip_address: Optional[str] = None) -> VerifyOtpOutcome:
        request_id = str(uuid.uuid4())
        result = self.engine.verify_challenge(phone_number, otp_code, country_hint)

        if result.status is VerificationStatus.INVALID_PHONE:
            raise _phone_error(result.phone_error)
        if result.status is VerificationStatus.INVALID_FORMAT:
            raise APIException(400, result.status.value, f"OTP must be a {self.engine.config.length}-digit number")

        phone = result.phone
        if not result.is_valid:
            self.audit.log("otp_verification_failed", phone.e164, request_id=request_id, ip_address=ip_address,
                           success=False, details={"reason": result.status.value})
            if result.status is VerificationStatus.WRONG_CODE:
                remaining = result.attempts_remaining
                noun = "attempt" if remaining == 1 else "attempts"
                raise APIException(
                    400,
                    result.status.value,
                    f"Invalid verification code. {remaining} {noun} remaining.",
                    attemptsRemaining=remaining,
                )
            status_code, message = _VERIFY_FAILURES[result.status]
            raise APIException(status_code, result.status.value, message)

        demo = result.demo
        role = demo.role if demo else "user"
        requires_role_selection = demo.requires_role_selection if demo else True
        restaurant_name = demo.restaurant_name if demo else None

        claims: Dict[str, Any] = {
            "phone": phone.e164,
            "role": role,
            "requiresRoleSelection": requires_role_selection,
        }
        if restaurant_name:
            claims["restaurantName"] = restaurant_name
        token = self.token_issuer.issue_access_token(phone.e164, claims)

        self.audit.log("otp_verified", phone.e164, request_id=request_id, ip_address=ip_address,
                       details={"demo": demo is not None})
        return VerifyOtpOutcome(
            token=token,
            user={
                "phone": phone.e164,
                "formattedPhone": format_for_display(phone.e164),
                "country": phone.country,
                "role": role,
                "requiresRoleSelection": requires_role_selection,
                "restaurantName": restaurant_name,
            },
        )

    def clear_rate_limit(self, phone_number: str, country_hint: Optional[str] = None,
                         ip_address: Optional[str] = None) -> str:
        result = self.engine.clear_rate_limit(phone_number, country_hint)
        if not result.success:
            raise _phone_error(result.phone_error)
        self.audit.log("rate_limit_cleared", result.phone.e164, ip_address=ip_address)
        return result.phone.e164

    def test_messaging(self, test_type: str, phone_number: Optional[str] = None,
                       method: str = "sms", country_hint: Optional[str] = None) -> Dict[str, Any]:
        if test_type == "connection":
            status = self.sender.test_connection()
            if not status.success:
                raise APIException(500, "CONNECTION_FAILED", "Twilio connection failed", details=status.error)
            return {"accountSid": (status.account_sid or "")[-8:]}

        try:
            identity = self.engine.normalize(phone_number or "", country_hint)
        except PhoneValidationError as e:
            raise _phone_error(e)
        channel = DeliveryChannel.WHATSAPP if method == "whatsapp" else DeliveryChannel.SMS
        delivery = self.sender.send_test_message(identity.e164, channel)
        if not delivery.success:
            raise APIException(500, "DELIVERY_FAILED", "Test message failed", details=delivery.error)
        return {
            "method": delivery.channel.value,
            "messageSid": delivery.message_sid,
            "status": delivery.status,
            "cost": delivery.cost,
        }
