from __future__ import annotations

import json
from typing import TYPE_CHECKING, ClassVar

import pytest

import ailang.__main__ as cli
from ailang.config.loader import API_KEY_ENV_VARS
from ailang.core import translator
from tests.conftest import DummyTranslationClient

if TYPE_CHECKING:
    from pathlib import Path

    from ailang.models.config_models import General


class DummyLoggerUtils:
    configured: ClassVar[list[General]] = []

    @classmethod
    def configure(cls, general: General) -> None:
        cls.configured.append(general)


@pytest.fixture(autouse=True)
def cli_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in API_KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AILANG_API_KEY", "test-key")
    monkeypatch.chdir(tmp_path)
    DummyLoggerUtils.configured = []
    monkeypatch.setattr(cli, "LoggerUtils", DummyLoggerUtils)
    monkeypatch.setattr(translator, "GeminiTranslationClient", DummyTranslationClient)


@pytest.fixture
def base_args(tmp_path: Path) -> list[str]:
    strings_path: Path = tmp_path / "strings_en.json"
    strings_path.write_text(json.dumps({"hello": "Hello", "bye": "Goodbye"}), encoding="utf-8")
    return ["--storage", str(tmp_path / "ailang.db"), "--base-strings", str(strings_path)]


@pytest.mark.asyncio
async def test_preload_then_stats(base_args: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    assert await cli.main([*base_args, "preload", "fr", "de"]) == 0
    out: str = capsys.readouterr().out
    assert "fr: 2 string(s) cached" in out
    assert "de: 2 string(s) cached" in out

    assert await cli.main([*base_args, "stats"]) == 0
    out = capsys.readouterr().out
    assert "Total entries:   4" in out
    assert "Active entries:  4" in out


@pytest.mark.asyncio
async def test_preload_reports_unsupported_language(
    base_args: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    assert await cli.main([*base_args, "preload", "xx", "es"]) == 1
    captured = capsys.readouterr()
    assert "xx: unsupported language" in captured.err
    assert "es: 2 string(s) cached" in captured.out


@pytest.mark.asyncio
async def test_clear_language(base_args: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    await cli.main([*base_args, "preload", "fr", "de"])

    assert await cli.main([*base_args, "clear", "--language", "fr"]) == 0
    await cli.main([*base_args, "stats"])

    out: str = capsys.readouterr().out
    assert "Cached translations for 'fr' cleared." in out
    assert "Total entries:   2" in out


@pytest.mark.asyncio
async def test_clear_all(base_args: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    await cli.main([*base_args, "preload", "fr"])

    assert await cli.main([*base_args, "clear"]) == 0
    await cli.main([*base_args, "stats"])

    out: str = capsys.readouterr().out
    assert "Translation cache cleared." in out
    assert "Total entries:   0" in out


@pytest.mark.asyncio
async def test_languages_lists_registry(capsys: pytest.CaptureFixture[str]) -> None:
    assert await cli.main(["languages"]) == 0
    out: str = capsys.readouterr().out
    assert "ja" in out
    assert "日本語" in out


@pytest.mark.asyncio
async def test_missing_config_file_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert await cli.main(["--config", str(tmp_path / "missing.ini"), "stats"]) == 2
    assert "Failed to load configuration file" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_preload_without_api_key(
    base_args: list[str], monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("AILANG_API_KEY")

    assert await cli.main([*base_args, "preload", "fr"]) == 2
    assert "API key" in capsys.readouterr().err


def test_missing_command_exits(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_arguments([])
    assert exc_info.value.code == 2
    assert "usage:" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_clear_with_disabled_cache_keeps_entries(
    base_args: list[str], tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    ini_path: Path = tmp_path / "disabled.ini"
    ini_path.write_text("[CACHE]\nENABLED = false\n", encoding="utf-8")
    await cli.main([*base_args, "preload", "fr", "de"])

    assert await cli.main(["--config", str(ini_path), *base_args, "clear", "--language", "fr"]) == 0
    await cli.main([*base_args, "stats"])

    out: str = capsys.readouterr().out
    assert "Translation cache is disabled; nothing cleared." in out
    assert "Total entries:   4" in out


@pytest.mark.asyncio
async def test_log_file_option_is_resolved(base_args: list[str], tmp_path: Path) -> None:
    assert await cli.main(["--log-file", "ailang.log", "--debug", *base_args, "stats"]) == 0

    general: General = DummyLoggerUtils.configured[-1]
    assert general.LOG_FILE == str(tmp_path.resolve() / "ailang.log")
    assert general.DEBUG is True
