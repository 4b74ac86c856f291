from typing import Any, Dict, Protocol


class ConfigSourceError(Exception):
    """Raised by a config source that cannot produce OTP settings."""


class OtpConfigSource(Protocol):
    name: str

    def fetch(self) -> Dict[str, Any]:
        ...
