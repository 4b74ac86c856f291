# Dependency wiring: one engine and one AuthService per process
import logging
from functools import lru_cache

from .core.config import settings
from .application.services.auth_service import AuthService
from .application.services.demo_policy import DemoPolicy
from .application.services.otp_config import OtpConfigLoader
from .application.services.otp_engine import OtpEngine
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.config.settings_config_source import SettingsOtpConfigSource
from .infrastructure.config.vault_config_source import VaultOtpConfigSource
from .infrastructure.messaging.twilio_sender import TwilioMessageSender
from .infrastructure.otp.memory_otp_store import InMemoryOtpStore
from .infrastructure.otp.redis_otp_store import RedisOtpStore
from .infrastructure.rate_limit.memory_rate_window import InMemoryRateWindowStore
from .infrastructure.rate_limit.redis_rate_window import RedisRateWindowStore
from .infrastructure.tokens.jwt_issuer import JwtTokenIssuer

logger = logging.getLogger(__name__)


def build_config_loader() -> OtpConfigLoader:
    return OtpConfigLoader([
        VaultOtpConfigSource(
            settings.VAULT_ADDR,
            settings.VAULT_TOKEN,
            path=settings.VAULT_OTP_PATH,
            timeout=settings.VAULT_TIMEOUT_SECONDS,
        ),
        SettingsOtpConfigSource(settings),
    ])


def build_stores():
    if settings.OTP_STORE_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise RuntimeError("OTP_STORE_BACKEND=redis requires REDIS_URL")
        logger.info("Using Redis OTP store")
        return RedisOtpStore.from_url(settings.REDIS_URL, grace_seconds=settings.OTP_REDIS_GRACE_SECONDS), RedisRateWindowStore.from_url(settings.REDIS_URL)
    logger.info("Using in-memory OTP store")
    return InMemoryOtpStore(), InMemoryRateWindowStore()


@lru_cache()
def get_otp_engine() -> OtpEngine:
    loader = build_config_loader()
    config = loader.load()
    otp_store, rate_store = build_stores()
    engine = OtpEngine(
        config=config,
        otp_store=otp_store,
        rate_store=rate_store,
        demo_policy=DemoPolicy(enabled=settings.DEMO_IDENTITIES_ENABLED),
        default_country=settings.DEFAULT_COUNTRY,
        supported_countries=settings.supported_countries_list,
        demo_expiry_minutes=settings.DEMO_OTP_EXPIRY_MINUTES,
        config_source=loader.loaded_from,
    )
    logger.info(f"OTP engine ready (config from {loader.loaded_from}, store {settings.OTP_STORE_BACKEND})")
    return engine


@lru_cache()
def get_auth_service() -> AuthService:
    return AuthService(
        engine=get_otp_engine(),
        sender=TwilioMessageSender(),
        token_issuer=JwtTokenIssuer(settings.SECRET_KEY, settings.ALGORITHM, settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        audit=StdAuditLogger(),
        expose_demo_codes=not settings.is_production,
        sms_enabled=settings.TWILIO_SMS_ENABLED,
    )


def reload_otp_config() -> str:
    """Re-read the OTP policy from its sources and apply it to the running engine."""
    engine = get_otp_engine()
    engine.reload_config(build_config_loader())
    return engine.config_source
