import json
import logging

from restaurant_auth.infrastructure.audit.std_logger import StdAuditLogger, hash_phone_number


def test_audit_line_hashes_phone(caplog):
    with caplog.at_level(logging.INFO, logger="restaurant_auth.infrastructure.audit.std_logger"):
        StdAuditLogger().log("otp_requested", "+919876543210", request_id="r-1", ip_address="10.0.0.1",
                             details={"channel": "whatsapp"})

    message = caplog.records[-1].getMessage()
    assert message.startswith("AUDIT: ")
    entry = json.loads(message[len("AUDIT: "):])
    assert entry["action"] == "otp_requested"
    assert entry["phone_hash"] == hash_phone_number("+919876543210")
    assert entry["success"] is True
    assert entry["details"] == {"channel": "whatsapp"}
    assert "+919876543210" not in message
