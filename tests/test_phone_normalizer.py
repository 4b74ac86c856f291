import pytest

from restaurant_auth.application.ports.message_sender import DeliveryChannel
from restaurant_auth.application.services.phone_normalizer import (
    PhoneErrorCode,
    PhoneValidationError,
    clean_phone_input,
    format_for_display,
    mask_phone,
    normalize_phone,
    preferred_channel,
    to_whatsapp_address,
)


def test_clean_phone_input_keeps_digits_and_leading_plus():
    assert clean_phone_input(" +91 (98765) 43-210 ") == "+919876543210"
    assert clean_phone_input("098765 43210") == "09876543210"
    assert clean_phone_input(None) == ""


@pytest.mark.parametrize("raw", ["+91 98765 43210", "9876543210", "+91-9876-543-210"])
def test_indian_inputs_normalize_to_same_e164(raw):
    phone = normalize_phone(raw)
    assert phone.e164 == "+919876543210"
    assert phone.country == "IN"
    assert phone.national_number == "9876543210"


def test_local_number_uses_default_country():
    phone = normalize_phone("(415) 555-2671", default_country="US")
    assert phone.e164 == "+14155552671"
    assert phone.country == "US"


def test_normalize_is_idempotent():
    first = normalize_phone("+44 20 7946 0000")
    assert normalize_phone(first.e164) == first


@pytest.mark.parametrize("raw", ["", "   ", None, "abc"])
def test_empty_input(raw):
    with pytest.raises(PhoneValidationError) as exc:
        normalize_phone(raw)
    assert exc.value.reason is PhoneErrorCode.EMPTY_INPUT


def test_malformed_number():
    with pytest.raises(PhoneValidationError) as exc:
        normalize_phone("12345")
    assert exc.value.reason is PhoneErrorCode.MALFORMED


def test_unsupported_country_names_the_region():
    with pytest.raises(PhoneValidationError) as exc:
        normalize_phone("+33 6 12 34 56 78")
    assert exc.value.reason is PhoneErrorCode.UNSUPPORTED_COUNTRY
    assert exc.value.country == "FR"
    assert "FR" in str(exc.value)


def test_supported_countries_can_be_narrowed():
    with pytest.raises(PhoneValidationError) as exc:
        normalize_phone("+14155552671", supported_countries=["IN"])
    assert exc.value.reason is PhoneErrorCode.UNSUPPORTED_COUNTRY


def test_format_for_display():
    assert format_for_display("+919876543210") == "+91 98765 43210"
    assert format_for_display("not-a-number") == "not-a-number"


def test_preferred_channel_mobile_vs_landline():
    assert preferred_channel("+919876543210") is DeliveryChannel.WHATSAPP
    assert preferred_channel("+442079460000") is DeliveryChannel.NONE


def test_whatsapp_address_and_mask():
    assert to_whatsapp_address("+919876543210") == "whatsapp:+919876543210"
    assert mask_phone("+919876543210") == "*********3210"
    assert mask_phone("") == ""
