import logging
from typing import Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...core.config import settings
from ...application.ports.message_sender import ConnectionStatus, DeliveryChannel, DeliveryResult, MessageSender
from ...application.ports.otp_store import OtpPurpose
from ...application.services import message_templates
from ...application.services.phone_normalizer import mask_phone, normalize_phone, to_whatsapp_address

logger = logging.getLogger(__name__)

TEST_CODE = "123456"
TEST_EXPIRY = "5 minutes"


class TwilioMessageSender(MessageSender):
    def __init__(self, client: Optional[Client] = None):
        if client is None:
            http_client = TwilioHttpClient(timeout=settings.TWILIO_TIMEOUT_SECONDS, max_retries=settings.TWILIO_MAX_RETRIES)
            client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, http_client=http_client)
        self.client = client
        self.account_sid = settings.TWILIO_ACCOUNT_SID
        self.from_number = settings.TWILIO_PHONE_NUMBER
        self.whatsapp_number = settings.TWILIO_WHATSAPP_NUMBER

    def _country(self, phone: str) -> str:
        try:
            return normalize_phone(phone, supported_countries=settings.supported_countries_list).country
        except ValueError:
            return "default"

    def _create(self, channel: DeliveryChannel, from_: str, to: str, body: str, phone: str) -> DeliveryResult:
        if not from_:
            return DeliveryResult(False, channel, error=f"Twilio {channel.value} sender number not configured")
        try:
            message = self.client.messages.create(from_=from_, to=to, body=body)
        except TwilioRestException as e:
            logger.error(f"Twilio {channel.value} error for {mask_phone(phone)}: {e.code} - {e.msg}")
            return DeliveryResult(False, channel, error=str(e.msg))
        except TwilioException as e:
            logger.error(f"Twilio {channel.value} error for {mask_phone(phone)}: {e}")
            return DeliveryResult(False, channel, error=str(e))

        logger.info(f"OTP sent via {channel.value} to {mask_phone(phone)} (SID: {message.sid})")
        return DeliveryResult(
            True,
            channel,
            message_sid=message.sid,
            status=message.status,
            cost=message_templates.estimated_cost(channel, self._country(phone)),
        )

    def _send_whatsapp(self, phone: str, code: str, expiry_text: str) -> DeliveryResult:
        body = message_templates.whatsapp_content(code, expiry_text)
        return self._create(DeliveryChannel.WHATSAPP, self.whatsapp_number, to_whatsapp_address(phone), body, phone)

    def _send_sms(self, phone: str, code: str, expiry_text: str, purpose: OtpPurpose) -> DeliveryResult:
        body = message_templates.sms_content(code, expiry_text, purpose)
        check = message_templates.validate_sms_length(body)
        if not check.is_valid:
            return DeliveryResult(False, DeliveryChannel.SMS,
                                  error=f"SMS content too long ({check.length} chars, max {message_templates.SMS_MAX_LENGTH})")
        return self._create(DeliveryChannel.SMS, self.from_number, phone, body, phone)

    def send(self, phone: str, code: str, expiry_text: str, purpose: OtpPurpose, channel: DeliveryChannel) -> DeliveryResult:
        if channel is DeliveryChannel.WHATSAPP:
            return self._send_whatsapp(phone, code, expiry_text)
        if channel is DeliveryChannel.SMS:
            return self._send_sms(phone, code, expiry_text, purpose)
        return DeliveryResult(False, channel, error="Phone number cannot receive messages")

    def test_connection(self) -> ConnectionStatus:
        try:
            account = self.client.api.accounts(self.account_sid).fetch()
        except TwilioException as e:
            logger.error(f"Twilio connection test failed: {e}")
            return ConnectionStatus(False, error=str(e))
        return ConnectionStatus(True, account_sid=account.sid)

    def send_test_message(self, phone: str, channel: DeliveryChannel) -> DeliveryResult:
        return self.send(phone, TEST_CODE, TEST_EXPIRY, OtpPurpose.LOGIN, channel)
