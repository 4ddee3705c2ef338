# ruff: noqa: BLE001
"""Current-language preference and the supported-language registry."""

from __future__ import annotations

import asyncio
import locale
from typing import TYPE_CHECKING

from ailang.core.language.const_languages import RTL_LANGUAGE_CODES, SUPPORTED_LANGUAGE_CODES, SUPPORTED_LANGUAGES
from ailang.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from ailang.core.storage import KeyValueStorage
    from ailang.models.config_models import Config
    from ailang.models.translation_models import Language

__all__: list[str] = ["LanguageManager", "system_locale"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def system_locale() -> str | None:
    """Return the process locale name such as 'en_US', or None when unset."""
    try:
        name, _ = locale.getlocale()
    except ValueError:
        return None
    return name


class LanguageManager:
    """Tracks the current language and persists it.

    The stored preference is a bare UTF-8 language code under its own storage record.
    Until ``component_load`` runs, the current language is the configured default.
    """

    def __init__(
        self,
        config: Config,
        storage: KeyValueStorage,
        *,
        locale_provider: Callable[[], str | None] = system_locale,
    ) -> None:
        self.config: Config = config
        self._storage: KeyValueStorage = storage
        self._locale_provider: Callable[[], str | None] = locale_provider
        self._record_name: str = config.STORAGE.LANGUAGE_RECORD
        self._default_language: str = config.LANGUAGE.DEFAULT_LANGUAGE
        self._current_language: str = self._default_language

    @property
    def current_language(self) -> str:
        return self._current_language

    @property
    def default_language(self) -> str:
        return self._default_language

    async def component_load(self) -> str:
        """Resolve the starting language.

        Order: persisted preference, then the device locale (when enabled), then the configured default.
        Unsupported candidates are skipped.

        Returns:
            str: The resolved language code.
        """
        saved: str | None = await self._load_preference()
        if saved is not None and self.is_supported(saved):
            self._current_language = saved
        elif saved is not None:
            logger.warning("Ignoring unsupported saved language '%s'", saved)
            self._current_language = self._detect_or_default()
        else:
            self._current_language = self._detect_or_default()

        logger.info("Current language: %s", self._current_language)
        return self._current_language

    async def _load_preference(self) -> str | None:
        try:
            raw: bytes | None = await asyncio.to_thread(self._storage.get, self._record_name)
        except Exception as err:
            logger.error("Failed to load language preference: %s", err)
            return None
        if raw is None:
            return None
        try:
            return raw.decode("utf-8").strip() or None
        except UnicodeDecodeError:
            logger.warning("Stored language preference is not valid UTF-8")
            return None

    def _detect_or_default(self) -> str:
        if self.config.LANGUAGE.DETECT_DEVICE_LANGUAGE:
            detected: str | None = self.detect_device_language()
            if detected is not None:
                return detected
        return self._default_language

    def detect_device_language(self) -> str | None:
        """Map the device locale to a supported language code.

        'en_US.UTF-8' and 'en-US' both map to 'en'.

        Returns:
            str | None: Supported language code, or None when the locale is unknown or unsupported.
        """
        name: str | None = self._locale_provider()
        if not name:
            return None
        code: str = name.split(".")[0].replace("-", "_").split("_")[0].lower()
        return code if self.is_supported(code) else None

    async def set_current_language(self, code: str) -> bool:
        """Switch and persist the current language.

        Args:
            code (str): Language code.

        Returns:
            bool: False when the code is unsupported (nothing changes), True otherwise.
        """
        if not self.is_supported(code):
            logger.warning("Language '%s' is not supported", code)
            return False

        try:
            await asyncio.to_thread(self._storage.set, self._record_name, code.encode("utf-8"))
        except Exception as err:
            logger.error("Failed to save language preference: %s", err)
        # no await between the switch and the caller rebuilding its per-language state
        self._current_language = code
        return True

    @staticmethod
    def is_supported(code: str) -> bool:
        """Exact, case-sensitive registry membership."""
        return code in SUPPORTED_LANGUAGE_CODES

    def is_rtl(self, code: str | None = None) -> bool:
        """Whether a language is written right-to-left.

        Args:
            code (str | None): Language code; the current language when omitted.
        """
        return (code if code is not None else self._current_language) in RTL_LANGUAGE_CODES

    @staticmethod
    def get_supported_languages() -> list[Language]:
        return list(SUPPORTED_LANGUAGES)

    @staticmethod
    def get_language(code: str) -> Language | None:
        return next((lang for lang in SUPPORTED_LANGUAGES if lang.code == code), None)

    def get_language_name(self, code: str) -> str:
        """English display name, or ``code`` itself when unknown."""
        lang: Language | None = self.get_language(code)
        return lang.name if lang is not None else code

    def get_native_name(self, code: str) -> str:
        """Native display name, or ``code`` itself when unknown."""
        lang: Language | None = self.get_language(code)
        return lang.native_name if lang is not None else code
