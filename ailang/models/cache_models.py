"""Models for translation cache data.

Defines the structured cache key, the persisted cache entry and cache statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Self

from dataclasses_json import DataClassJsonMixin

__all__: list[str] = [
    "CacheEntry",
    "CacheKey",
    "CacheStatistics",
]


class CacheKey(NamedTuple):
    """Composite cache key.

    Attributes:
        key (str): Application string key.
        language (str): Target language code.
    """

    key: str
    language: str

    def encode(self) -> str:
        """Serialize to the persisted form ``<len(key)>:<key>_<language>``.

        The length prefix keeps keys that themselves contain underscores unambiguous.
        """
        return f"{len(self.key)}:{self.key}_{self.language}"

    @classmethod
    def decode(cls, raw: str) -> Self:
        """Parse the persisted form produced by ``encode``.

        Args:
            raw (str): Encoded key.

        Returns:
            CacheKey: Decoded key.

        Raises:
            ValueError: If the string is not a valid encoded key.
        """
        length_str, sep, rest = raw.partition(":")
        if not sep or not length_str.isdigit():
            msg: str = f"Invalid cache key: {raw!r}"
            raise ValueError(msg)
        length: int = int(length_str)
        if len(rest) < length + 2 or rest[length] != "_":
            msg = f"Invalid cache key: {raw!r}"
            raise ValueError(msg)
        return cls(key=rest[:length], language=rest[length + 1 :])


@dataclass(frozen=True)
class CacheEntry(DataClassJsonMixin):
    """Translation cache entry data.

    Attributes:
        value (str): Translated text.
        timestamp (float): Insertion time in epoch seconds.
    """

    value: str
    timestamp: float


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        total_entries (int): Number of stored entries, expired ones included.
        active_entries (int): Entries still within the cache duration.
        expired_entries (int): Entries past the cache duration but not yet evicted.
        estimated_size_kb (float): Heuristic size estimate in KiB.
    """

    total_entries: int = 0
    active_entries: int = 0
    expired_entries: int = 0
    estimated_size_kb: float = 0.0
