"""Persisted cache record."""

from dataclasses import dataclass, field
from typing import Any

from trotd.types.entry import Entry

CACHE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class CacheRecord:
    """A fetched, filtered result set and when it was fetched."""

    fingerprint: str
    fetched_at: float  # seconds since the epoch
    entries: tuple[Entry, ...] = field(default_factory=tuple)

    def age(self, now: float) -> float:
        """Seconds elapsed since the fetch."""
        return now - self.fetched_at

    def is_fresh(self, now: float, ttl: float) -> bool:
        """True while ``now - fetched_at < ttl``."""
        return self.age(now) < ttl

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": CACHE_FORMAT_VERSION,
            "fingerprint": self.fingerprint,
            "fetched_at": self.fetched_at,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheRecord":
        """
        Rebuild a record, ignoring unknown fields.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        fetched_at = data["fetched_at"]
        if isinstance(fetched_at, bool) or not isinstance(fetched_at, (int, float)):
            raise ValueError(f"invalid fetched_at: {fetched_at!r}")
        entries = data["entries"]
        if not isinstance(entries, list):
            raise ValueError("entries must be a list")
        return cls(
            fingerprint=str(data["fingerprint"]),
            fetched_at=float(fetched_at),
            entries=tuple(Entry.from_dict(item) for item in entries),
        )
