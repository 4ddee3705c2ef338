"""Data models for AiLang.

This package contains dataclass definitions for configuration, cache entries and translation data.
"""

from __future__ import annotations

from ailang.models.cache_models import CacheEntry, CacheKey, CacheStatistics
from ailang.models.config_models import Config
from ailang.models.translation_models import Language, TranslationRequest, TranslationResult

__all__: list[str] = [
    "CacheEntry",
    "CacheKey",
    "CacheStatistics",
    "Config",
    "Language",
    "TranslationRequest",
    "TranslationResult",
]
