"""AiLang: AI-backed string translation with a persisted, expiring translation cache."""

from ailang.config.loader import ConfigLoader
from ailang.core.storage import KeyValueStorage, MemoryStorage, SQLiteStorage
from ailang.core.trans.interface import (
    ApiError,
    ConfigError,
    NetworkError,
    ParseError,
    RateLimitError,
    TranslationError,
    TranslationErrorKind,
    TranslationOutcome,
)
from ailang.core.translator import AiLang
from ailang.models.config_models import Config
from ailang.version import VERSION

__all__: list[str] = [
    "VERSION",
    "AiLang",
    "ApiError",
    "Config",
    "ConfigError",
    "ConfigLoader",
    "KeyValueStorage",
    "MemoryStorage",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "SQLiteStorage",
    "TranslationError",
    "TranslationErrorKind",
    "TranslationOutcome",
]
