"""Configuration file loader and validator.

Reads the INI configuration file into the ``Config`` dataclasses, coerces each value to the
type of the field it lands in, applies environment and keyword overrides and validates the result.
"""

from __future__ import annotations

import configparser
import os
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from ailang.core.language.const_languages import SUPPORTED_LANGUAGE_CODES
from ailang.models.config_models import Config
from ailang.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "API_KEY_ENV_VARS",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
    "resolve_api_key",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

API_KEY_ENV_VARS: Final[tuple[str, ...]] = ("AILANG_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


def resolve_api_key(configured: str) -> str:
    """Return the configured API key, falling back to the environment.

    Args:
        configured (str): Value from the configuration file.

    Returns:
        str: The first non-empty value among the configured key and ``API_KEY_ENV_VARS``.
    """
    if configured.strip():
        return configured.strip()
    for name in API_KEY_ENV_VARS:
        value: str = os.getenv(name, "").strip()
        if value:
            logger.debug("API key taken from environment variable '%s'", name)
            return value
    return ""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    Args:
        config_filename (str | Path | None): INI file to load. None builds a default configuration
            (environment overrides and validation still apply).
        script_name (str): Executing script name, used in error messaging.
        **args: Overrides. ``api_key``, ``default_language``, ``base_strings``, ``storage``,
            ``log_file`` and ``debug`` are recognised; None values are ignored.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str | Path | None,
        script_name: str = "ailang",
        **args,
    ) -> None:
        parser: ConfigParser = ConfigParser()
        msg: str

        if config_filename is not None:
            config_path = Path(config_filename)
            if not config_path.exists():
                msg = (
                    f"Configuration file '{config_filename}' not found. "
                    f"Please create '{config_path.name}' before running '{script_name}'."
                )
                raise ConfigFileNotFoundError(msg)

            try:
                parser.read(config_path, encoding="utf-8")
            except configparser.Error as err:
                msg = f"Failed to parse configuration file '{config_filename}': {err}"
                raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._convert_settings(parser)
        self._apply_overrides(args)
        self.config.TRANSLATION.API_KEY = resolve_api_key(self.config.TRANSLATION.API_KEY)
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Copy every defined INI value into the matching Config field.

        Args:
            parser (ConfigParser): Parsed INI data.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section '%s' not defined; using defaults", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

        known: set[str] = {section.name for section in fields(self.config)}
        for section_name in parser.sections():
            if section_name not in known:
                logger.warning("Unknown configuration section '%s' ignored", section_name)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        for key in fields(getattr(self.config, section.name)):
            if not parser.has_option(section.name, key.name):
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _apply_overrides(self, args: dict[str, Any]) -> None:
        """Apply keyword overrides, typically from the command line."""
        overrides: dict[str, tuple[str, str]] = {
            "api_key": ("TRANSLATION", "API_KEY"),
            "default_language": ("LANGUAGE", "DEFAULT_LANGUAGE"),
            "base_strings": ("LANGUAGE", "BASE_STRINGS_PATH"),
            "storage": ("STORAGE", "PATH"),
            "log_file": ("GENERAL", "LOG_FILE"),
        }
        for arg_name, (section_name, key_name) in overrides.items():
            if args.get(arg_name) is not None:
                setattr(getattr(self.config, section_name), key_name, str(args[arg_name]))
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True

    def _validate_settings(self) -> None:
        """Validate numeric ranges and the default language.

        Raises:
            ConfigValueError: If validation fails for any setting.
        """
        self._require_positive("TRANSLATION", "BATCH_SIZE")
        self._require_positive("TRANSLATION", "RETRY_COUNT")
        self._require_positive("TRANSLATION", "TIMEOUT")
        self._require_positive("TRANSLATION", "MAX_OUTPUT_TOKENS")
        self._require_non_negative("TRANSLATION", "RETRY_DELAY")
        self._require_non_negative("TRANSLATION", "MAX_RETRY_DELAY")
        self._require_non_negative("TRANSLATION", "BATCH_DELAY")
        self._require_non_negative("CACHE", "DURATION")
        self._require_non_negative("CACHE", "MAX_SIZE_MB")
        self._require_positive("CACHE", "AVERAGE_ENTRY_BYTES")

        ratio: float = self.config.CACHE.EVICTION_RATIO
        if not 0.0 < ratio <= 1.0:
            msg: str = f"'CACHE.EVICTION_RATIO' must be in (0, 1]: {ratio}"
            raise ConfigValueError(msg)

        default_language: str = self.config.LANGUAGE.DEFAULT_LANGUAGE
        if default_language not in SUPPORTED_LANGUAGE_CODES:
            msg = f"Unsupported language code used for 'LANGUAGE.DEFAULT_LANGUAGE': {default_language}"
            raise ConfigValueError(msg)

        if not self.config.TRANSLATION.API_KEY:
            logger.warning(
                "No API key configured; set 'TRANSLATION.API_KEY' or one of %s to enable translation.",
                ", ".join(API_KEY_ENV_VARS),
            )

    def _require_positive(self, section_name: str, key_name: str) -> None:
        value: float = getattr(getattr(self.config, section_name), key_name)
        if value <= 0:
            msg: str = f"'{section_name}.{key_name}' must be greater than zero: {value}"
            raise ConfigValueError(msg)

    def _require_non_negative(self, section_name: str, key_name: str) -> None:
        value: float = getattr(getattr(self.config, section_name), key_name)
        if value < 0:
            msg: str = f"'{section_name}.{key_name}' must not be negative: {value}"
            raise ConfigValueError(msg)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the type of the current Config field value.

        Args:
            section (DataclassField[Any]): Configuration section field containing the key.
            key (DataclassField[Any]): Target field within the section.

        Returns:
            Any: Parsed value.

        Raises:
            ConfigValueError: If a value cannot be parsed at all.
            ConfigTypeError: If a value parses but does not fit the field type (e.g. "2.5" for an integer).
        """
        formatters: dict[type, Callable[[DataclassField[Any], DataclassField[Any]], Any]] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], Any] = formatters[
            type(getattr(getattr(self.config, section.name), key.name))
        ]
        try:
            return formatter(section, key)
        except ValueError as err:
            msg = f"Invalid value for {section.name}.{key.name}: {err}"
            raise ConfigValueError(msg) from err
        except TypeError as err:
            msg = f"Invalid value for {section.name}.{key.name}: {err}"
            raise ConfigTypeError(msg) from err

    def _raw(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name).strip()
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return value

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        """Convert INI string to float."""
        return float(self._raw(section, key))

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        """Convert INI string to integer; "10" and "1e2" are accepted, "2.5" is not."""
        raw: str = self._raw(section, key)
        value: float = float(raw)
        if not value.is_integer():
            msg: str = f"expected a whole number, got '{raw}'"
            raise TypeError(msg)
        return int(value)

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section.name, key.name)

    def parse_as_string(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        """Return the INI string with surrounding quotes removed."""
        return self._raw(section, key)
