from typing import Any, Dict

from ...core.config import Settings
from ...application.ports.config_source import OtpConfigSource


class SettingsOtpConfigSource(OtpConfigSource):
    """OTP_* environment overrides; the loader rejects it unless every required key is set."""

    name = "environment"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def fetch(self) -> Dict[str, Any]:
        return {
            "length": self.settings.OTP_LENGTH,
            "expiry_minutes": self.settings.OTP_EXPIRY_MINUTES,
            "max_attempts": self.settings.OTP_MAX_ATTEMPTS,
            "rate_limit_per_hour": self.settings.OTP_RATE_LIMIT_PER_HOUR,
            "cleanup_interval_hours": self.settings.OTP_CLEANUP_INTERVAL_HOURS,
        }
