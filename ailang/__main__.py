"""Command-line maintenance for the AiLang translation cache.

Preloads translations for one or more languages, prints cache statistics, clears the cache
and lists supported languages. Output goes to stdout/stderr; logs go to the optional log file.

Example:
    python -m ailang --config ailang.ini preload fr de ja
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from ailang.config.loader import ConfigLoader, ConfigLoaderError
from ailang.core.cache.manager import TranslationCacheManager
from ailang.core.language.manager import LanguageManager
from ailang.core.storage import KeyValueStorage, SQLiteStorage
from ailang.core.trans.interface import TranslationError
from ailang.core.translator import AiLang
from ailang.utils.file_utils import FileUtils
from ailang.utils.logger_utils import LoggerUtils
from ailang.version import VERSION

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ailang.models.config_models import Config

__all__: list[str] = ["main", "run"]

CFG_FILE: Final[str] = "ailang.ini"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        prog="ailang",
        description="Manage the AiLang translation cache",
        epilog="Example: python -m ailang --config ailang.ini preload fr de",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--config", dest="config", metavar="INI_FILE", help=f"Configuration file (default: {CFG_FILE})")
    parser.add_argument("--storage", dest="storage", metavar="DB_FILE", help="Override the storage database path")
    parser.add_argument("--base-strings", dest="base_strings", metavar="JSON_FILE", help="Override the base strings")
    parser.add_argument(
        "--log-file", dest="log_file", metavar="LOG_FILE", help="Write a debug log (overrides GENERAL.LOG_FILE)"
    )
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    preload = commands.add_parser("preload", help="Translate and cache all base strings for languages")
    preload.add_argument("languages", nargs="+", metavar="LANG")
    commands.add_parser("stats", help="Show cache statistics")
    clear = commands.add_parser("clear", help="Clear cached translations")
    clear.add_argument("--language", dest="language", metavar="LANG", help="Only clear this language")
    commands.add_parser("languages", help="List supported languages")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file (when present) and apply CLI overrides.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    config_filename: str | None = args.config
    if config_filename is None and Path(CFG_FILE).exists():
        config_filename = CFG_FILE
    overrides: dict[str, object] = {
        "storage": args.storage,
        "base_strings": args.base_strings,
        "log_file": args.log_file,
        "debug": args.debug,
    }
    return ConfigLoader(config_filename=config_filename, script_name="ailang", **overrides).config


def _open_storage(config: Config) -> KeyValueStorage:
    return SQLiteStorage(FileUtils.resolve_path(config.STORAGE.PATH))


async def preload_languages(config: Config, languages: Sequence[str]) -> int:
    """Preload each language and report per-language results.

    Returns:
        int: Process exit code.
    """
    with _open_storage(config) as storage:
        return await _preload_into(config, storage, languages)


async def _preload_into(config: Config, storage: KeyValueStorage, languages: Sequence[str]) -> int:
    exit_code: int = 0
    async with AiLang(config, storage=storage) as ailang:
        if not ailang.base_strings:
            print("No base strings to translate.", file=sys.stderr)
            return 1
        for code in languages:
            if not ailang.language.is_supported(code):
                print(f"{code}: unsupported language", file=sys.stderr)
                exit_code = 1
                continue
            try:
                translations: dict[str, str] = await ailang.preload_language(code)
            except TranslationError as err:
                print(f"{code}: failed ({err.kind}): {err}", file=sys.stderr)
                exit_code = 1
                continue
            print(f"{code}: {len(translations)} string(s) cached")
    return exit_code


async def show_statistics(config: Config) -> int:
    with _open_storage(config) as storage:
        cache = TranslationCacheManager(config, storage)
        await cache.component_load()
        stats = cache.get_cache_statistics()
        await cache.component_teardown()
    print(f"Total entries:   {stats.total_entries}")
    print(f"Active entries:  {stats.active_entries}")
    print(f"Expired entries: {stats.expired_entries}")
    print(f"Estimated size:  {stats.estimated_size_kb:.1f} KB")
    return 0


async def clear_cache(config: Config, language: str | None) -> int:
    with _open_storage(config) as storage:
        cache = TranslationCacheManager(config, storage)
        await cache.component_load()
        if not cache.enabled:
            print("Translation cache is disabled; nothing cleared.")
        elif language is None:
            await cache.clear_all()
            print("Translation cache cleared.")
        else:
            await cache.clear_language(language)
            print(f"Cached translations for '{language}' cleared.")
        await cache.component_teardown()
    return 0


def list_languages() -> int:
    for lang in LanguageManager.get_supported_languages():
        print(f"{lang.code:<4} {lang.name:<12} {lang.native_name}")
    return 0


async def main(argv: Sequence[str] | None = None) -> int:
    """Entry point.

    Returns:
        int: Process exit code.
    """
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 2

    if config.GENERAL.LOG_FILE.strip():
        config.GENERAL.LOG_FILE = str(FileUtils.resolve_path(config.GENERAL.LOG_FILE.strip()))
    LoggerUtils.configure(config.GENERAL)

    match args.command:
        case "preload":
            try:
                return await preload_languages(config, args.languages)
            except TranslationError as err:
                print(f"\nError: {err}", file=sys.stderr)
                return 2
        case "stats":
            return await show_statistics(config)
        case "clear":
            return await clear_cache(config, args.language)
        case _:
            return list_languages()


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
