import threading
from typing import Dict, List

from ...application.ports.rate_window_store import RateWindowStore


class InMemoryRateWindowStore(RateWindowStore):
    def __init__(self) -> None:
        self._store: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def count_since(self, key: str, cutoff: float) -> int:
        with self._lock:
            times = self._store.get(key)
            if not times:
                return 0
            # prune
            times = [t for t in times if t > cutoff]
            if not times:
                self._store.pop(key, None)
                return 0
            self._store[key] = times
            return len(times)

    def append(self, key: str, timestamp: float) -> None:
        with self._lock:
            self._store.setdefault(key, []).append(timestamp)

    def clear(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def purge_before(self, cutoff: float) -> int:
        with self._lock:
            stale = [key for key, times in self._store.items() if not times or times[-1] <= cutoff]
            for key in stale:
                del self._store[key]
            return len(stale)

    def __len__(self) -> int:
        return len(self._store)
