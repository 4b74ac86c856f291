import json
import math
from datetime import datetime, timezone
from typing import Optional

import redis

from ...application.ports.otp_store import OtpPurpose, OtpRecord, OtpStore


class RedisOtpStore(OtpStore):
    """Records as JSON under `otp:{phone}`; Redis key expiry replaces the sweep."""

    def __init__(self, client: "redis.Redis", prefix: str = "otp:", grace_seconds: int = 60) -> None:
        self.client = client
        self.prefix = prefix
        self.grace_seconds = grace_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisOtpStore":
        return cls(redis.Redis.from_url(url), **kwargs)

    def _key(self, phone: str) -> str:
        return f"{self.prefix}{phone}"

    def get(self, phone: str) -> Optional[OtpRecord]:
        raw = self.client.get(self._key(phone))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        data = json.loads(raw)
        return OtpRecord(
            phone=data["phone"],
            code=data["code"],
            purpose=OtpPurpose(data["purpose"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            attempts=int(data.get("attempts", 0)),
        )

    def put(self, record: OtpRecord) -> None:
        payload = json.dumps({
            "phone": record.phone,
            "code": record.code,
            "purpose": record.purpose.value,
            "expires_at": record.expires_at.isoformat(),
            "attempts": record.attempts,
        })
        # keep the key slightly past expiry so verification still observes EXPIRED
        ttl = math.ceil((record.expires_at - datetime.now(timezone.utc)).total_seconds()) + self.grace_seconds
        self.client.setex(self._key(record.phone), max(ttl, 1), payload)

    def delete(self, phone: str) -> None:
        self.client.delete(self._key(phone))

    def purge_expired(self, now: datetime) -> int:
        return 0
