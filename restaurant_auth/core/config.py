# restaurant_auth/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='forbid')

    # Application Settings
    APP_NAME: str = "Restaurant Daily Auth API"
    APP_VERSION: str = "1.0.0"
    ENV: str = os.environ.get("ENV", "development")
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # CORS Settings
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Twilio Settings
    TWILIO_ACCOUNT_SID: str = os.environ.get("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.environ.get("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.environ.get("TWILIO_PHONE_NUMBER", "")
    TWILIO_WHATSAPP_NUMBER: str = os.environ.get("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")
    TWILIO_SMS_ENABLED: bool = False  # sandbox accounts can only reach WhatsApp
    TWILIO_TIMEOUT_SECONDS: int = 15
    TWILIO_MAX_RETRIES: int = 3

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting (per client IP, all endpoints)
    RATE_LIMIT_PER_MINUTE: int = 60

    # OTP storage
    OTP_STORE_BACKEND: str = "memory"  # "memory" or "redis"
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)
    OTP_REDIS_GRACE_SECONDS: int = 3600  # how long an expired record stays readable as EXPIRED

    # Vault (first OTP config source)
    VAULT_ADDR: str = os.environ.get("VAULT_ADDR", "http://127.0.0.1:8200")
    VAULT_TOKEN: str = os.environ.get("VAULT_TOKEN", "")
    VAULT_OTP_PATH: str = "secret/otp"
    VAULT_TIMEOUT_SECONDS: float = 3.0

    # OTP overrides (second OTP config source, all-or-nothing)
    OTP_LENGTH: Optional[int] = None
    OTP_EXPIRY_MINUTES: Optional[int] = None
    OTP_MAX_ATTEMPTS: Optional[int] = None
    OTP_RATE_LIMIT_PER_HOUR: Optional[int] = None
    OTP_CLEANUP_INTERVAL_HOURS: Optional[int] = None

    # Phone policy
    DEFAULT_COUNTRY: str = "IN"
    SUPPORTED_COUNTRIES: str = "IN,US,GB,AU"

    # Demo identities
    DEMO_IDENTITIES_ENABLED: bool = True
    DEMO_OTP_EXPIRY_MINUTES: int = 30

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def supported_countries_list(self) -> List[str]:
        return [c.upper() for c in self._split_csv(self.SUPPORTED_COUNTRIES)]

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
