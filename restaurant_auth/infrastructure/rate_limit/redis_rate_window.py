import uuid

import redis

from ...application.ports.rate_window_store import RateWindowStore

WINDOW_TTL_SECONDS = 60 * 60


class RedisRateWindowStore(RateWindowStore):
    """Sliding window as a sorted set of attempt timestamps under `otp_rl:{phone}`."""

    def __init__(self, client: "redis.Redis", prefix: str = "otp_rl:") -> None:
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisRateWindowStore":
        return cls(redis.Redis.from_url(url), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def count_since(self, key: str, cutoff: float) -> int:
        rk = self._key(key)
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(rk, "-inf", cutoff)
        pipe.zcard(rk)
        _, count = pipe.execute()
        return int(count)

    def append(self, key: str, timestamp: float) -> None:
        rk = self._key(key)
        pipe = self.client.pipeline()
        pipe.zadd(rk, {f"{timestamp}:{uuid.uuid4().hex[:8]}": timestamp})
        pipe.expire(rk, WINDOW_TTL_SECONDS)
        pipe.execute()

    def clear(self, key: str) -> None:
        self.client.delete(self._key(key))

    def purge_before(self, cutoff: float) -> int:
        # windows carry a key TTL, Redis drops them itself
        return 0
