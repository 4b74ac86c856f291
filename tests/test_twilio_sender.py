from types import SimpleNamespace

import pytest
from twilio.base.exceptions import TwilioRestException

from restaurant_auth.application.ports.message_sender import DeliveryChannel
from restaurant_auth.application.ports.otp_store import OtpPurpose
from restaurant_auth.infrastructure.messaging import twilio_sender as mod


class FakeMessages:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def create(self, from_, to, body):
        if self.error:
            raise self.error
        self.sent.append({"from_": from_, "to": to, "body": body})
        return SimpleNamespace(sid=f"SM{len(self.sent):032d}", status="queued")


class FakeAccounts:
    def __init__(self, error=None):
        self.error = error

    def __call__(self, sid):
        return self

    def fetch(self):
        if self.error:
            raise self.error
        return SimpleNamespace(sid="AC0123456789abcdef")


class FakeClient:
    def __init__(self, error=None, account_error=None):
        self.messages = FakeMessages(error)
        self.api = SimpleNamespace(accounts=FakeAccounts(account_error))


@pytest.fixture(autouse=True)
def twilio_numbers(monkeypatch):
    monkeypatch.setattr(mod.settings, "TWILIO_PHONE_NUMBER", "+15005550006")
    monkeypatch.setattr(mod.settings, "TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")


def test_whatsapp_delivery():
    client = FakeClient()
    sender = mod.TwilioMessageSender(client=client)
    result = sender.send("+919876543210", "482913", "5 minutes", OtpPurpose.LOGIN, DeliveryChannel.WHATSAPP)

    assert result.success
    assert result.channel is DeliveryChannel.WHATSAPP
    assert result.message_sid.startswith("SM")
    assert result.cost == 0.35
    sent = client.messages.sent[0]
    assert sent["from_"] == "whatsapp:+14155238886"
    assert sent["to"] == "whatsapp:+919876543210"
    assert "*482913*" in sent["body"]


def test_sms_delivery_uses_purpose_template():
    client = FakeClient()
    sender = mod.TwilioMessageSender(client=client)
    result = sender.send("+14155552671", "482913", "5 minutes", OtpPurpose.PASSWORD_RESET, DeliveryChannel.SMS)

    assert result.success
    assert result.cost == 0.75
    sent = client.messages.sent[0]
    assert sent["from_"] == "+15005550006"
    assert sent["to"] == "+14155552671"
    assert "Password reset code: 482913" in sent["body"]


def test_missing_sender_number(monkeypatch):
    monkeypatch.setattr(mod.settings, "TWILIO_PHONE_NUMBER", "")
    client = FakeClient()
    result = mod.TwilioMessageSender(client=client).send(
        "+919876543210", "482913", "5 minutes", OtpPurpose.LOGIN, DeliveryChannel.SMS
    )
    assert not result.success
    assert "not configured" in result.error
    assert client.messages.sent == []


def test_twilio_error_is_reported_not_raised():
    error = TwilioRestException(400, "/Messages", msg="Unverified number", code=21608)
    result = mod.TwilioMessageSender(client=FakeClient(error=error)).send(
        "+919876543210", "482913", "5 minutes", OtpPurpose.LOGIN, DeliveryChannel.WHATSAPP
    )
    assert not result.success
    assert result.error == "Unverified number"


def test_none_channel_is_refused():
    result = mod.TwilioMessageSender(client=FakeClient()).send(
        "+442079460000", "482913", "5 minutes", OtpPurpose.LOGIN, DeliveryChannel.NONE
    )
    assert not result.success


def test_connection_check():
    assert mod.TwilioMessageSender(client=FakeClient()).test_connection().account_sid == "AC0123456789abcdef"

    error = TwilioRestException(401, "/Accounts", msg="Authenticate", code=20003)
    status = mod.TwilioMessageSender(client=FakeClient(account_error=error)).test_connection()
    assert not status.success


def test_send_test_message_uses_fixed_code():
    client = FakeClient()
    result = mod.TwilioMessageSender(client=client).send_test_message("+919876543210", DeliveryChannel.SMS)
    assert result.success
    assert mod.TEST_CODE in client.messages.sent[0]["body"]
