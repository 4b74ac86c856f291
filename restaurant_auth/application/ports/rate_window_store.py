from typing import Protocol


class RateWindowStore(Protocol):
    def count_since(self, key: str, cutoff: float) -> int:
        """Drop timestamps at or before `cutoff` and return how many remain."""
        ...

    def append(self, key: str, timestamp: float) -> None:
        ...

    def clear(self, key: str) -> None:
        ...

    def purge_before(self, cutoff: float) -> int:
        """Drop every window with no timestamp after `cutoff`; returns how many keys went."""
        ...
