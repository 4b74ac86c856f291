import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional

from ..ports.otp_store import OtpPurpose, OtpRecord, OtpStore
from ..ports.rate_window_store import RateWindowStore
from .demo_policy import DemoIdentity, DemoPolicy
from .keyed_lock import KeyedLock
from .otp_config import OtpConfig, OtpConfigLoader
from .otp_generator import OtpGenerator, generate_code
from .otp_verifier import OtpVerifier, VerificationResult, VerificationStatus, is_valid_code_format
from .phone_normalizer import (
    DEFAULT_COUNTRY,
    SUPPORTED_COUNTRIES,
    PhoneIdentity,
    PhoneValidationError,
    mask_phone,
    normalize_phone,
)
from .rate_limiter import OtpRateLimiter, utc_now

logger = logging.getLogger(__name__)

DEMO_EXPIRY_MINUTES = 30


class IssueStatus(str, Enum):
    ISSUED = "ISSUED"
    DEMO_ISSUED = "DEMO_ISSUED"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_PHONE = "INVALID_PHONE"


@dataclass
class IssueResult:
    status: IssueStatus
    phone: Optional[PhoneIdentity] = None
    record: Optional[OtpRecord] = None
    demo: Optional[DemoIdentity] = None
    remaining_attempts: Optional[int] = None
    expires_in: Optional[str] = None
    phone_error: Optional[PhoneValidationError] = None

    @property
    def is_issued(self) -> bool:
        return self.status in (IssueStatus.ISSUED, IssueStatus.DEMO_ISSUED)


@dataclass
class EngineVerification(VerificationResult):
    phone: Optional[PhoneIdentity] = None
    demo: Optional[DemoIdentity] = None
    phone_error: Optional[PhoneValidationError] = None


@dataclass
class ClearResult:
    success: bool
    phone: Optional[PhoneIdentity] = None
    phone_error: Optional[PhoneValidationError] = None


class OtpEngine:
    """Issuance, rate limiting and verification of one-time passcodes.

    Every verb normalizes the raw phone first; the resulting E.164 string keys
    both stores. Demo identities are resolved once at the top of issuance and
    short-circuit into a real record carrying their fixed code, so verification
    never needs to special-case them.
    """

    def __init__(
        self,
        config: OtpConfig,
        otp_store: OtpStore,
        rate_store: RateWindowStore,
        demo_policy: Optional[DemoPolicy] = None,
        default_country: str = DEFAULT_COUNTRY,
        supported_countries: Iterable[str] = SUPPORTED_COUNTRIES,
        demo_expiry_minutes: int = DEMO_EXPIRY_MINUTES,
        clock: Callable[[], datetime] = utc_now,
        code_factory: Callable[[int], str] = generate_code,
        config_source: Optional[str] = None,
    ) -> None:
        self._config = config
        self._config_lock = threading.Lock()
        self.config_source = config_source
        self.otp_store = otp_store
        self.demo_policy = demo_policy or DemoPolicy(enabled=False)
        self.default_country = default_country
        self.supported_countries = tuple(supported_countries)
        self.demo_expiry_minutes = demo_expiry_minutes
        self.clock = clock
        self.rate_limiter = OtpRateLimiter(rate_store, config, clock)
        self.generator = OtpGenerator(otp_store, config, clock, code_factory)
        self.verifier = OtpVerifier(otp_store, config, clock)
        self._locks = KeyedLock()
        self._sweep_lock = threading.Lock()
        self._last_sweep: Optional[datetime] = None

    @property
    def config(self) -> OtpConfig:
        return self._config

    @config.setter
    def config(self, config: OtpConfig) -> None:
        self.update_config(config)

    def update_config(self, config: OtpConfig, source: Optional[str] = None) -> None:
        """Swap the policy for every component at once; records already issued keep their expiry."""
        with self._config_lock:
            self._config = config
            for component in (self.rate_limiter, self.generator, self.verifier):
                component.config = config
            if source is not None:
                self.config_source = source
        logger.info(f"OTP config updated (source {self.config_source})")

    def reload_config(self, loader: OtpConfigLoader) -> OtpConfig:
        config = loader.load()
        self.update_config(config, loader.loaded_from)
        return config

    def normalize(self, raw_phone: str, country_hint: Optional[str] = None) -> PhoneIdentity:
        return normalize_phone(raw_phone, country_hint or self.default_country, self.supported_countries)

    def is_valid_code_format(self, code: Optional[str]) -> bool:
        return is_valid_code_format(code, self.config.length)

    def request_challenge(self, raw_phone: str, purpose: OtpPurpose = OtpPurpose.LOGIN,
                          country_hint: Optional[str] = None) -> IssueResult:
        try:
            phone = self.normalize(raw_phone, country_hint)
        except PhoneValidationError as e:
            return IssueResult(IssueStatus.INVALID_PHONE, phone_error=e)

        with self._locks.hold(phone.e164):
            demo = self.demo_policy.lookup(phone.e164)
            if demo is not None:
                record = self.generator.materialize(phone.e164, purpose, demo.code, self.demo_expiry_minutes)
                logger.info(f"Demo OTP issued for {mask_phone(phone.e164)}")
                return IssueResult(
                    IssueStatus.DEMO_ISSUED,
                    phone=phone,
                    record=record,
                    demo=demo,
                    expires_in=self.generator.expiry_description(record.expires_at),
                )

            if self.rate_limiter.is_rate_limited(phone.e164):
                logger.warning(f"OTP rate limit exceeded for {mask_phone(phone.e164)}")
                return IssueResult(
                    IssueStatus.RATE_LIMITED,
                    phone=phone,
                    remaining_attempts=self.rate_limiter.remaining_attempts(phone.e164),
                )

            self.rate_limiter.record_attempt(phone.e164)
            record = self.generator.generate(phone.e164, purpose)

        logger.info(f"OTP issued for {mask_phone(phone.e164)} ({purpose.value})")
        return IssueResult(
            IssueStatus.ISSUED,
            phone=phone,
            record=record,
            remaining_attempts=self.rate_limiter.remaining_attempts(phone.e164),
            expires_in=self.generator.expiry_description(record.expires_at),
        )

    def verify_challenge(self, raw_phone: str, code: str, country_hint: Optional[str] = None) -> EngineVerification:
        try:
            phone = self.normalize(raw_phone, country_hint)
        except PhoneValidationError as e:
            return EngineVerification(VerificationStatus.INVALID_PHONE, phone_error=e)

        if not self.is_valid_code_format(code):
            return EngineVerification(VerificationStatus.INVALID_FORMAT, phone=phone)

        with self._locks.hold(phone.e164):
            result = self.verifier.verify(phone.e164, code)

        logger.info(f"OTP verification for {mask_phone(phone.e164)}: {result.status.value}")
        return EngineVerification(
            result.status,
            attempts_remaining=result.attempts_remaining,
            record=result.record,
            phone=phone,
            demo=self.demo_policy.lookup(phone.e164) if result.is_valid else None,
        )

    def clear_rate_limit(self, raw_phone: str, country_hint: Optional[str] = None) -> ClearResult:
        try:
            phone = self.normalize(raw_phone, country_hint)
        except PhoneValidationError as e:
            return ClearResult(False, phone_error=e)

        with self._locks.hold(phone.e164):
            self.rate_limiter.clear(phone.e164)
        logger.info(f"Rate limit cleared for {mask_phone(phone.e164)}")
        return ClearResult(True, phone=phone)

    def sweep_expired(self, force: bool = False) -> int:
        """Drop expired records, at most once per cleanup interval unless forced."""
        now = self.clock()
        with self._sweep_lock:
            interval = timedelta(hours=self.config.cleanup_interval_hours)
            if not force and self._last_sweep is not None and now - self._last_sweep < interval:
                return 0
            self._last_sweep = now
        removed = self.otp_store.purge_expired(now)
        windows = self.rate_limiter.purge_stale()
        if removed or windows:
            logger.info(f"Swept {removed} expired OTP records and {windows} idle rate windows")
        return removed

