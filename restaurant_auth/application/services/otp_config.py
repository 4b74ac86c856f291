import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..ports.config_source import ConfigSourceError, OtpConfigSource

logger = logging.getLogger(__name__)


class OtpConfig(BaseModel):
    length: int = Field(6, ge=4, le=10)
    expiry_minutes: int = Field(5, ge=1)
    max_attempts: int = Field(3, ge=1)
    rate_limit_per_hour: int = Field(3, ge=1)
    cleanup_interval_hours: int = Field(24, ge=1)

    model_config = {"frozen": True}


DEFAULT_OTP_CONFIG = OtpConfig()

REQUIRED_KEYS = ("length", "expiry_minutes", "max_attempts", "rate_limit_per_hour")


class OtpConfigLoader:
    """Tries each source in order; falls back to the hardcoded defaults.

    `load()` never raises: OTP issuance must keep working when every
    configuration backend is down.
    """

    def __init__(self, sources: Iterable[OtpConfigSource], fallback: OtpConfig = DEFAULT_OTP_CONFIG) -> None:
        self.sources: List[OtpConfigSource] = list(sources)
        self.fallback = fallback
        self.loaded_from: Optional[str] = None

    def load(self) -> OtpConfig:
        for source in self.sources:
            try:
                raw = source.fetch()
                missing = [key for key in REQUIRED_KEYS if raw.get(key) in (None, "")]
                if missing:
                    raise ConfigSourceError(f"missing keys: {', '.join(missing)}")
                values = {key: value for key, value in raw.items() if key in OtpConfig.model_fields and value not in (None, "")}
                config = OtpConfig(**values)
            except (ConfigSourceError, ValidationError, TypeError, ValueError) as e:
                logger.warning(f"OTP config source '{source.name}' unavailable, trying next: {e}")
                continue
            self.loaded_from = source.name
            logger.info(f"Loaded OTP config from {source.name}")
            return config

        self.loaded_from = "defaults"
        logger.warning("No OTP config source available, using built-in defaults")
        return self.fallback
