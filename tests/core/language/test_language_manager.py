from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ailang.core.language.const_languages import RTL_LANGUAGE_CODES, SUPPORTED_LANGUAGES
from ailang.core.language.manager import LanguageManager
from ailang.models.translation_models import Language

if TYPE_CHECKING:
    from ailang.core.storage import MemoryStorage
    from ailang.models.config_models import Config


def _manager(config: Config, storage: MemoryStorage, locale_name: str | None = None) -> LanguageManager:
    return LanguageManager(config, storage, locale_provider=lambda: locale_name)


def test_registry_has_fifty_unique_languages() -> None:
    codes: list[str] = [lang.code for lang in SUPPORTED_LANGUAGES]
    assert len(codes) == 50
    assert len(set(codes)) == 50


def test_language_equality_uses_code_only() -> None:
    assert Language("en", "English", "English") == Language("en", "Anglais", "Anglais")


@pytest.mark.asyncio
async def test_component_load_defaults(config: Config, storage: MemoryStorage) -> None:
    manager = _manager(config, storage)
    assert await manager.component_load() == "en"


@pytest.mark.asyncio
async def test_component_load_prefers_saved_language(config: Config, storage: MemoryStorage) -> None:
    storage.set(config.STORAGE.LANGUAGE_RECORD, b"ja")
    config.LANGUAGE.DETECT_DEVICE_LANGUAGE = True
    manager = _manager(config, storage, "fr_FR")

    assert await manager.component_load() == "ja"


@pytest.mark.asyncio
async def test_component_load_detects_device_language(config: Config, storage: MemoryStorage) -> None:
    config.LANGUAGE.DETECT_DEVICE_LANGUAGE = True
    manager = _manager(config, storage, "de_DE.UTF-8")

    assert await manager.component_load() == "de"


@pytest.mark.asyncio
async def test_component_load_ignores_unsupported_device_language(config: Config, storage: MemoryStorage) -> None:
    config.LANGUAGE.DETECT_DEVICE_LANGUAGE = True
    manager = _manager(config, storage, "xx_YY")

    assert await manager.component_load() == "en"


@pytest.mark.asyncio
async def test_component_load_skips_unsupported_saved_language(config: Config, storage: MemoryStorage) -> None:
    storage.set(config.STORAGE.LANGUAGE_RECORD, b"klingon")
    manager = _manager(config, storage)

    assert await manager.component_load() == "en"


@pytest.mark.asyncio
async def test_set_current_language_persists(config: Config, storage: MemoryStorage) -> None:
    manager = _manager(config, storage)

    assert await manager.set_current_language("hi") is True

    assert manager.current_language == "hi"
    assert storage.get(config.STORAGE.LANGUAGE_RECORD) == b"hi"


@pytest.mark.asyncio
async def test_set_current_language_rejects_unsupported(
    config: Config, storage: MemoryStorage, caplog: pytest.LogCaptureFixture
) -> None:
    manager = _manager(config, storage)

    assert await manager.set_current_language("EN") is False

    assert manager.current_language == "en"
    assert storage.get(config.STORAGE.LANGUAGE_RECORD) is None
    assert "not supported" in caplog.text


def test_is_supported_is_case_sensitive() -> None:
    assert LanguageManager.is_supported("fil") is True
    assert LanguageManager.is_supported("FIL") is False


def test_is_rtl(config: Config, storage: MemoryStorage) -> None:
    manager = _manager(config, storage)
    assert manager.is_rtl("ar") is True
    assert manager.is_rtl("yi") is True
    assert manager.is_rtl("en") is False
    assert manager.is_rtl() is False
    assert {"ar", "he", "fa", "ur", "yi", "ps", "sd", "ug"} == RTL_LANGUAGE_CODES


def test_names_fall_back_to_code(config: Config, storage: MemoryStorage) -> None:
    manager = _manager(config, storage)
    assert manager.get_language_name("hi") == "Hindi"
    assert manager.get_native_name("hi") == "हिन्दी"
    assert manager.get_language_name("zz") == "zz"
    assert manager.get_native_name("zz") == "zz"
