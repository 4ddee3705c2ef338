"""Translation provider client and error taxonomy."""

from __future__ import annotations

from ailang.core.trans.gemini_client import GeminiTranslationClient
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

__all__: list[str] = [
    "ApiError",
    "ConfigError",
    "GeminiTranslationClient",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "TranslationError",
    "TranslationErrorKind",
    "TranslationOutcome",
]
