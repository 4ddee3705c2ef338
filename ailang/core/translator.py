# ruff: noqa: BLE001
"""AiLang translation facade.

``AiLang`` is the object applications hold: it resolves string keys for the current language,
falls back to base-language text while translations are fetched in the background, and keeps
the cache, the language preference and change listeners in step.

Typical use::

    async with AiLang(config, base_strings={"greeting": "Hello, {name}!"}) as ailang:
        await ailang.set_language("fr")
        await ailang.flush()
        print(ailang.t("greeting", {"name": "Ada"}))
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self, TypeAlias

from ailang.core.cache.manager import TranslationCacheManager
from ailang.core.language.manager import LanguageManager, system_locale
from ailang.core.storage import KeyValueStorage, MemoryStorage, SQLiteStorage
from ailang.core.trans.gemini_client import GeminiTranslationClient
from ailang.core.trans.interface import TranslationErrorKind, TranslationOutcome
from ailang.models.cache_models import CacheKey
from ailang.models.translation_models import TranslationResult
from ailang.utils.file_utils import FileUtils, FileUtilsError
from ailang.utils.logger_utils import LoggerUtils
from ailang.utils.string_utils import StringUtils
from ailang.utils.task_queue import BackgroundTaskQueue

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from ailang.models.cache_models import CacheStatistics
    from ailang.models.config_models import Config
    from ailang.models.translation_models import Language

__all__: list[str] = ["AiLang", "LanguageChangeListener"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

LanguageChangeListener: TypeAlias = "Callable[[str], None]"


class AiLang:
    """Translation context object.

    Args:
        config (Config): Application configuration.
        storage (KeyValueStorage | None): Durable store shared by the cache and the language preference.
            When omitted, ``STORAGE.PATH`` selects an SQLite file, or memory when the path is empty.
        client (GeminiTranslationClient | None): Translation client. Built from ``config`` when omitted.
        base_strings (Mapping[str, str] | None): Source-language strings. When omitted they are read
            from ``LANGUAGE.BASE_STRINGS_PATH`` or ``strings_<default language>.json`` during ``initialize``.
        locale_provider (Callable[[], str | None]): Device locale lookup used on first start.
        clock (Callable[[], float]): Epoch-second clock used for cache timestamps.

    Raises:
        ConfigError: If ``client`` is omitted and no API key is configured.
    """

    def __init__(
        self,
        config: Config,
        *,
        storage: KeyValueStorage | None = None,
        client: GeminiTranslationClient | None = None,
        base_strings: Mapping[str, str] | None = None,
        locale_provider: Callable[[], str | None] = system_locale,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config: Config = config
        self._owns_storage: bool = storage is None
        self._storage: KeyValueStorage = storage if storage is not None else self._create_storage(config)
        self._owns_client: bool = client is None
        self._client: GeminiTranslationClient = client if client is not None else GeminiTranslationClient(config)
        self.cache: TranslationCacheManager = TranslationCacheManager(config, self._storage, clock=clock)
        self.language: LanguageManager = LanguageManager(config, self._storage, locale_provider=locale_provider)
        self._base_strings: Mapping[str, str] = MappingProxyType(dict(base_strings)) if base_strings else {}
        self._base_strings_given: bool = base_strings is not None

        self._overlay: dict[str, str] = {}
        self._inflight: set[CacheKey] = set()
        self._loading_languages: set[str] = set()
        self._listeners: list[LanguageChangeListener] = []
        self._tasks: BackgroundTaskQueue = BackgroundTaskQueue("translation-fill")
        self._is_initialized: bool = False
        self._test_mode: bool = False
        self._mock_translations: dict[str, str] = {}

    @staticmethod
    def _create_storage(config: Config) -> KeyValueStorage:
        if not config.STORAGE.PATH.strip():
            return MemoryStorage()
        return SQLiteStorage(FileUtils.resolve_path(config.STORAGE.PATH))

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    # ---- life-cycle ----

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def default_language(self) -> str:
        return self.config.LANGUAGE.DEFAULT_LANGUAGE

    @property
    def current_language(self) -> str:
        return self.language.current_language

    @property
    def base_strings(self) -> Mapping[str, str]:
        return self._base_strings

    @property
    def is_loading(self) -> bool:
        """Whether a full-vocabulary translation is running."""
        return bool(self._loading_languages)

    async def initialize(self) -> None:
        """Load the cache, resolve the starting language and load base strings.

        Cached translations for the starting language are placed in the session overlay.
        Calling it again is a no-op.
        """
        if self._is_initialized:
            logger.info("AiLang already initialized")
            return

        await self.cache.component_load()
        await self.language.component_load()
        if not self._base_strings_given:
            self._base_strings = MappingProxyType(await asyncio.to_thread(self._load_base_strings))
        self._load_cached_translations()
        self._is_initialized = True
        logger.info(
            "AiLang initialized (language: %s, base strings: %d)", self.current_language, len(self._base_strings)
        )

    def _load_base_strings(self) -> dict[str, str]:
        path: str = self.config.LANGUAGE.BASE_STRINGS_PATH or f"strings_{self.default_language}.json"
        try:
            strings: dict[str, str] = FileUtils.load_strings_file(path)
        except FileUtilsError as err:
            logger.warning("Could not load base strings: %s", err)
            return {}
        logger.info("Loaded %d base string(s) from %s", len(strings), path)
        return strings

    async def close(self) -> None:
        """Cancel pending fills, flush the cache and release owned resources."""
        await self._tasks.cancel_all()
        await self.cache.component_teardown()
        if self._owns_client:
            await self._client.close()
        if self._owns_storage:
            await asyncio.to_thread(self._storage.close)
        self._is_initialized = False
        logger.info("AiLang closed")

    async def flush(self) -> None:
        """Wait until every background fill and cache write has finished."""
        await self._tasks.flush()
        await self.cache.flush()

    # ---- lookups ----

    def t(self, key: str, arg: Mapping[str, Any] | int | None = None) -> str:
        """Translate a key for the current language.

        ``t(key)`` resolves the text; ``t(key, {"name": ...})`` also substitutes ``{name}`` tokens;
        ``t(key, 3)`` selects a ``singular|plural`` form and substitutes ``{count}``.

        A miss schedules a background translation and returns the base text (or the key).
        """
        if arg is None:
            return self._resolve(key)
        if isinstance(arg, Mapping):
            return self.t_params(key, arg)
        if isinstance(arg, int) and not isinstance(arg, bool):
            return self.t_count(key, arg)
        msg: str = f"Expected a parameter mapping or an integer count, got {type(arg).__name__}"
        raise TypeError(msg)

    def t_params(self, key: str, params: Mapping[str, Any]) -> str:
        """Resolve ``key`` and replace each ``{name}`` token from ``params``. Unknown tokens stay literal."""
        return StringUtils.substitute_params(self._resolve(key), params)

    def t_count(self, key: str, count: int) -> str:
        """Resolve ``key`` and pick the singular or plural form for ``count``."""
        text: str = self._resolve(key)
        if "|" in text:
            return StringUtils.select_plural(text, count)
        return StringUtils.substitute_params(text, {"count": count})

    def _resolve(self, key: str) -> str:
        fallback: str = self._base_strings.get(key, key)
        if self._test_mode:
            return self._mock_translations.get(key, key)
        if not self._is_initialized:
            logger.warning("AiLang is not initialized; returning base text for '%s'", key)
            return fallback

        language: str = self.current_language
        if language == self.default_language:
            return fallback

        if key in self._overlay:
            return self._overlay[key]

        cached: str | None = self.cache.get(key, language)
        if cached is not None:
            self._overlay[key] = cached
            return cached

        self._schedule_key_fill(key, language)
        return fallback

    def get_translation_result(self, key: str) -> TranslationResult:
        """Describe how ``key`` resolves right now, without triggering a background fill."""
        original: str = self._base_strings.get(key, key)
        language: str = self.current_language
        translated: str | None = None
        if language != self.default_language:
            translated = self._overlay.get(key)
            if translated is None:
                translated = self.cache.get(key, language)
        return TranslationResult(
            key=key,
            original_text=original,
            translated_text=translated if translated is not None else original,
            target_language=language,
            from_cache=translated is not None,
        )

    # ---- background fills ----

    def _schedule_key_fill(self, key: str, language: str) -> None:
        if key not in self._base_strings:
            return
        cache_key = CacheKey(key, language)
        if cache_key in self._inflight:
            return
        self._inflight.add(cache_key)
        if self._tasks.submit(self._fill_key(cache_key), name=f"fill-{language}-{key}") is None:
            self._inflight.discard(cache_key)

    async def _fill_key(self, cache_key: CacheKey) -> None:
        try:
            outcome: TranslationOutcome = await self._client.translate_batch_outcome(
                {cache_key.key: self._base_strings[cache_key.key]}, cache_key.language
            )
            if not outcome.ok:
                self._log_failure(outcome, f"key '{cache_key.key}'", cache_key.language)
                return
            value: str | None = outcome.translations.get(cache_key.key)
            if value is None:
                logger.warning("No translation returned for key '%s' (%s)", cache_key.key, cache_key.language)
                return
            await self.cache.put(cache_key.key, value, cache_key.language)
            if self.current_language == cache_key.language:
                self._overlay[cache_key.key] = value
        finally:
            self._inflight.discard(cache_key)

    async def _fill_language(self, language: str) -> None:
        """Translate every base string that has no cached translation for ``language``."""
        overlay: dict[str, str] = self._overlay if self.current_language == language else {}
        untranslated: dict[str, str] = {
            key: text
            for key, text in self._base_strings.items()
            if key not in overlay and self.cache.get(key, language) is None
        }
        if not untranslated:
            return

        self._loading_languages.add(language)
        try:
            outcome: TranslationOutcome = await self._client.translate_batch_outcome(untranslated, language)
            if not outcome.ok:
                self._log_failure(outcome, f"{len(untranslated)} string(s)", language)
                return
            await self.cache.put_batch(outcome.translations, language)
            if self.current_language == language:
                self._overlay.update(outcome.translations)
            logger.info("Translated %d string(s) to '%s'", len(outcome.translations), language)
        finally:
            self._loading_languages.discard(language)

    @staticmethod
    def _log_failure(outcome: TranslationOutcome, subject: str, language: str) -> None:
        match outcome.kind:
            case TranslationErrorKind.RATE_LIMIT:
                logger.warning("Rate limited while translating %s to '%s': %s", subject, language, outcome.error)
            case TranslationErrorKind.CONFIG:
                logger.error("Translation is misconfigured: %s", outcome.error)
            case _:
                logger.warning(
                    "Translation of %s to '%s' failed (%s): %s", subject, language, outcome.kind, outcome.error
                )

    def _load_cached_translations(self) -> None:
        language: str = self.current_language
        if language == self.default_language:
            return
        self._overlay.update(
            {key: value for key, value in self.cache.get_all_for_language(language).items() if key in self._base_strings}
        )
        logger.debug("Loaded %d cached translation(s) for '%s'", len(self._overlay), language)

    # ---- language control ----

    async def set_language(self, code: str) -> None:
        """Switch the current language.

        Unsupported or unchanged codes are ignored. Otherwise the choice is persisted, the session
        overlay is rebuilt from the cache, missing strings are translated in the background, and
        listeners are notified.

        Args:
            code (str): Language code.
        """
        if not self.language.is_supported(code):
            logger.warning("Language '%s' is not supported", code)
            return
        previous: str = self.current_language
        if code == previous:
            return

        await self.language.set_current_language(code)
        self._overlay.clear()
        self._load_cached_translations()
        if code != self.default_language:
            self._tasks.submit(self._fill_language(code), name=f"fill-{code}")

        logger.info("Language changed from '%s' to '%s'", previous, code)
        self._notify_language_change(code)

    async def preload_language(self, code: str) -> dict[str, str]:
        """Translate and cache every base string for a language without switching to it.

        Args:
            code (str): Language code.

        Returns:
            dict[str, str]: The translations that were cached (empty for the default language).

        Raises:
            TranslationError: When the provider keeps failing.
        """
        if code == self.default_language or not self._base_strings:
            return {}

        self._loading_languages.add(code)
        try:
            translations: dict[str, str] = await self._client.translate_batch(self._base_strings, code)
        finally:
            self._loading_languages.discard(code)

        await self.cache.put_batch(translations, code)
        if self.current_language == code:
            self._overlay.update(translations)
        logger.info("Preloaded %d string(s) for '%s'", len(translations), code)
        return translations

    async def clear_cache(self) -> None:
        """Delete every cached translation and clear the session overlay."""
        await self.cache.clear_all()
        self._overlay.clear()

    def get_cache_statistics(self) -> CacheStatistics:
        return self.cache.get_cache_statistics()

    def get_supported_languages(self) -> list[Language]:
        return self.language.get_supported_languages()

    def is_rtl(self) -> bool:
        """Whether the current language is written right-to-left."""
        return self.language.is_rtl(self.current_language)

    # ---- listeners ----

    def add_language_change_listener(self, listener: LanguageChangeListener) -> None:
        """Register a synchronous listener called with the new language code.

        Raises:
            TypeError: If ``listener`` is a coroutine function; listeners are called, never awaited.
        """
        if inspect.iscoroutinefunction(listener):
            msg: str = f"Language change listeners must be synchronous: {listener!r}"
            raise TypeError(msg)
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_language_change_listener(self, listener: LanguageChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_language_change(self, listener: LanguageChangeListener) -> Callable[[], None]:
        """Register a listener and return a function that unregisters it."""
        self.add_language_change_listener(listener)
        return lambda: self.remove_language_change_listener(listener)

    def _notify_language_change(self, code: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(code)
            except Exception as err:
                logger.error("Language change listener %r failed: %s", listener, err)

    # ---- testing support ----

    def set_test_mode(self, enabled: bool) -> None:
        """In test mode ``t`` returns mock translations (or the key) without touching the cache or network."""
        self._test_mode = enabled

    def set_mock_translations(self, translations: Mapping[str, str]) -> None:
        self._mock_translations = dict(translations)
