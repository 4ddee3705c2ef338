# ruff: noqa: BLE001
"""Translation cache manager.

Keeps translations in memory keyed by (string key, language), expires them lazily after the
configured duration, bounds the cache by a size heuristic and writes the full map through to
durable storage after every mutation.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import TYPE_CHECKING, ClassVar

from ailang.models.cache_models import CacheEntry, CacheKey, CacheStatistics
from ailang.utils.logger_utils import LoggerUtils
from ailang.utils.task_queue import BackgroundTaskQueue

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

    from ailang.core.storage import KeyValueStorage
    from ailang.models.config_models import Config

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationCacheManager:
    """Expiring, size-bounded, persisted translation cache.

    Lookups are synchronous and only touch memory. Mutations are coroutines: they update memory
    and then persist a snapshot of the whole map under one storage record. Persistence failures
    are logged and otherwise ignored, so memory is always authoritative.

    Attributes:
        BYTES_PER_KB (ClassVar[int]): Divisor for the size estimate in statistics.
        _entries (dict[CacheKey, CacheEntry]): In-memory cache contents.
        _lock (asyncio.Lock): Serializes mutations and storage writes.
    """

    BYTES_PER_KB: ClassVar[int] = 1024

    def __init__(
        self,
        config: Config,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache manager.

        Args:
            config (Config): Application configuration (CACHE and STORAGE sections are used).
            storage (KeyValueStorage): Durable record store.
            clock (Callable[[], float]): Source of epoch-second timestamps.
        """
        self.config: Config = config
        self._storage: KeyValueStorage = storage
        self._clock: Callable[[], float] = clock
        self._record_name: str = config.STORAGE.CACHE_RECORD
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._is_initialized: bool = False
        self._lock: asyncio.Lock = asyncio.Lock()
        self._persist_queue: BackgroundTaskQueue = BackgroundTaskQueue("cache-persist")
        logger.debug("TranslationCacheManager instance created")

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def enabled(self) -> bool:
        return self.config.CACHE.ENABLED

    @property
    def duration(self) -> float:
        """Entry lifetime in seconds."""
        return self.config.CACHE.DURATION

    @property
    def max_size_bytes(self) -> float:
        return self.config.CACHE.MAX_SIZE_MB * 1024 * 1024

    def __len__(self) -> int:
        return len(self._entries)

    async def component_load(self) -> None:
        """Load the persisted snapshot into memory.

        A snapshot that cannot be decoded is deleted from storage and the cache starts empty.
        """
        logger.info("TranslationCacheManager initialization started")
        if not self.enabled:
            logger.info("Translation cache disabled by configuration")
            self._is_initialized = True
            return

        try:
            raw: bytes | None = await asyncio.to_thread(self._storage.get, self._record_name)
        except Exception as err:
            logger.error("Failed to read translation cache: %s", err)
            raw = None

        if raw is not None:
            try:
                self._entries = self._decode_snapshot(raw)
            except (ValueError, TypeError, KeyError, AttributeError) as err:
                logger.warning("Discarding corrupt translation cache: %s", err)
                self._entries = {}
                await self._remove_record()

        self._is_initialized = True
        logger.info("TranslationCacheManager loaded %d cached translation(s)", len(self._entries))

    async def component_teardown(self) -> None:
        """Finish pending writes."""
        logger.info("TranslationCacheManager shutdown started")
        await self._persist_queue.flush()
        self._is_initialized = False
        logger.info("TranslationCacheManager shutdown completed")

    async def flush(self) -> None:
        """Wait for background persistence triggered by expired lookups."""
        await self._persist_queue.flush()

    def get(self, key: str, language: str) -> str | None:
        """Look up a cached translation.

        An expired entry is dropped (the removal is persisted in the background) and reported as a miss.

        Args:
            key (str): String key.
            language (str): Language code.

        Returns:
            str | None: Cached translation, or None on miss or expiry.
        """
        if not self.enabled:
            return None

        cache_key = CacheKey(key, language)
        entry: CacheEntry | None = self._entries.get(cache_key)
        if entry is None:
            return None

        if self._is_expired(entry):
            logger.debug("Cache entry expired: %s", cache_key)
            del self._entries[cache_key]
            self._persist_queue.submit(self._persist(), name=f"persist-expired-{language}")
            return None

        return entry.value

    async def put(self, key: str, value: str, language: str) -> None:
        """Store one translation and persist the cache.

        Args:
            key (str): String key.
            value (str): Translated text.
            language (str): Language code.
        """
        if not self.enabled:
            return

        async with self._lock:
            self._insert(CacheKey(key, language), CacheEntry(value=value, timestamp=self._clock()))
            await self._save_locked()

    async def put_batch(self, translations: Mapping[str, str], language: str) -> None:
        """Store several translations for one language with a single storage write.

        Every entry shares the same timestamp; the size check runs before each insert.

        Args:
            translations (Mapping[str, str]): Key to translated text.
            language (str): Language code.
        """
        if not self.enabled or not translations:
            return

        async with self._lock:
            timestamp: float = self._clock()
            for key, value in translations.items():
                self._insert(CacheKey(key, language), CacheEntry(value=value, timestamp=timestamp))
            await self._save_locked()
        logger.debug("Cached %d translation(s) for '%s'", len(translations), language)

    async def remove(self, key: str, language: str) -> None:
        """Delete one translation and persist the cache."""
        if not self.enabled:
            return

        async with self._lock:
            self._entries.pop(CacheKey(key, language), None)
            await self._save_locked()

    async def clear_language(self, language: str) -> None:
        """Delete every translation for one language and persist the cache.

        Args:
            language (str): Language code, matched exactly.
        """
        if not self.enabled:
            return

        async with self._lock:
            doomed: list[CacheKey] = [cache_key for cache_key in self._entries if cache_key.language == language]
            for cache_key in doomed:
                del self._entries[cache_key]
            await self._save_locked()
        logger.info("Cleared %d cached translation(s) for '%s'", len(doomed), language)

    async def clear_all(self) -> None:
        """Empty the cache and delete the storage record.

        A disabled cache leaves the persisted record alone.
        """
        if not self.enabled:
            return

        async with self._lock:
            self._entries.clear()
            await self._remove_record()
        logger.info("Translation cache cleared")

    def get_all_for_language(self, language: str) -> dict[str, str]:
        """Return every non-expired translation for a language.

        Args:
            language (str): Language code, matched exactly.

        Returns:
            dict[str, str]: String key to translated text.
        """
        if not self.enabled:
            return {}
        return {
            cache_key.key: entry.value
            for cache_key, entry in self._entries.items()
            if cache_key.language == language and not self._is_expired(entry)
        }

    def get_cache_statistics(self) -> CacheStatistics:
        """Compute statistics over the current contents.

        Returns:
            CacheStatistics: Entry counts and heuristic size.
        """
        total: int = len(self._entries)
        expired: int = sum(1 for entry in self._entries.values() if self._is_expired(entry))
        return CacheStatistics(
            total_entries=total,
            active_entries=total - expired,
            expired_entries=expired,
            estimated_size_kb=self._estimate_size_bytes() / self.BYTES_PER_KB,
        )

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp >= self.duration

    def _estimate_size_bytes(self) -> int:
        return len(self._entries) * self.config.CACHE.AVERAGE_ENTRY_BYTES

    def _insert(self, cache_key: CacheKey, entry: CacheEntry) -> None:
        if self._estimate_size_bytes() > self.max_size_bytes:
            self._evict_oldest()
        self._entries[cache_key] = entry

    def _evict_oldest(self) -> None:
        """Drop the oldest share of entries by timestamp, at least one."""
        evict_count: int = max(1, int(len(self._entries) * self.config.CACHE.EVICTION_RATIO))
        oldest: list[CacheKey] = sorted(self._entries, key=lambda k: self._entries[k].timestamp)[:evict_count]
        for cache_key in oldest:
            del self._entries[cache_key]
        logger.debug("Evicted %d oldest cache entr(ies)", len(oldest))

    async def _persist(self) -> None:
        async with self._lock:
            await self._save_locked()

    async def _save_locked(self) -> None:
        """Write the snapshot. Caller holds ``_lock``."""
        try:
            data: bytes = self._encode_snapshot()
            await asyncio.to_thread(self._storage.set, self._record_name, data)
        except Exception as err:
            logger.error("Failed to save translation cache: %s", err)

    async def _remove_record(self) -> None:
        try:
            await asyncio.to_thread(self._storage.remove, self._record_name)
        except Exception as err:
            logger.error("Failed to delete translation cache record: %s", err)

    def _encode_snapshot(self) -> bytes:
        snapshot: dict[str, dict[str, object]] = {
            cache_key.encode(): entry.to_dict() for cache_key, entry in self._entries.items()
        }
        return json.dumps(snapshot, ensure_ascii=False).encode("utf-8")

    def _decode_snapshot(self, raw: bytes) -> dict[CacheKey, CacheEntry]:
        snapshot = json.loads(raw.decode("utf-8"))
        if not isinstance(snapshot, dict):
            msg: str = f"expected a JSON object, got {type(snapshot).__name__}"
            raise TypeError(msg)

        entries: dict[CacheKey, CacheEntry] = {}
        for encoded_key, payload in snapshot.items():
            entry: CacheEntry = CacheEntry.from_dict(payload)
            if not isinstance(entry.value, str):
                msg = f"invalid value for {encoded_key!r}"
                raise TypeError(msg)
            entries[CacheKey.decode(encoded_key)] = CacheEntry(value=entry.value, timestamp=float(entry.timestamp))
        return entries
