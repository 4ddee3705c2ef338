"""Configuration loading and validation for AiLang.

This package loads the INI configuration file into ``ailang.models.config_models.Config``.
"""

from ailang.config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigLoaderError,
    ConfigTypeError,
    ConfigValueError,
)

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]
