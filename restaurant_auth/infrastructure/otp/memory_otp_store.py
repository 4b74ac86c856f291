import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from ...application.ports.otp_store import OtpRecord, OtpStore


class InMemoryOtpStore(OtpStore):
    def __init__(self) -> None:
        self._store: Dict[str, OtpRecord] = {}
        self._lock = threading.Lock()

    def get(self, phone: str) -> Optional[OtpRecord]:
        with self._lock:
            rec = self._store.get(phone)
            # hand out a copy so attempts only change through put()
            return replace(rec) if rec else None

    def put(self, record: OtpRecord) -> None:
        with self._lock:
            self._store[record.phone] = replace(record)

    def delete(self, phone: str) -> None:
        with self._lock:
            self._store.pop(phone, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [phone for phone, rec in self._store.items() if rec.expires_at < now]
            for phone in expired:
                del self._store[phone]
            return len(expired)

    def __len__(self) -> int:
        return len(self._store)
