"""Configuration data models for AiLang.

Each dataclass mirrors one section of the INI file. Field names are the INI keys,
and the default value of each field determines how the loader coerces the raw string.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Cache",
    "Config",
    "General",
    "Language",
    "Storage",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class Translation:
    API_KEY: str = ""
    API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    MODEL: str = "gemini-2.0-flash"
    BATCH_SIZE: int = 50
    TIMEOUT: float = 30.0
    RETRY_COUNT: int = 3
    RETRY_DELAY: float = 1.0
    MAX_RETRY_DELAY: float = 30.0
    BATCH_DELAY: float = 0.1
    TEMPERATURE: float = 0.3
    TOP_P: float = 0.95
    MAX_OUTPUT_TOKENS: int = 8192
    SOURCE_LANGUAGE_NAME: str = "English"


@dataclass
class Cache:
    ENABLED: bool = True
    DURATION: float = 24 * 60 * 60.0  # seconds
    MAX_SIZE_MB: float = 10.0
    AVERAGE_ENTRY_BYTES: int = 100
    EVICTION_RATIO: float = 0.2


@dataclass
class Language:
    DEFAULT_LANGUAGE: str = "en"
    BASE_STRINGS_PATH: str = ""
    DETECT_DEVICE_LANGUAGE: bool = True


@dataclass
class Storage:
    PATH: str = "ailang.db"
    CACHE_RECORD: str = "ailang_cache"
    LANGUAGE_RECORD: str = "ailang_current_language"


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    CACHE: Cache = field(default_factory=Cache)
    LANGUAGE: Language = field(default_factory=Language)
    STORAGE: Storage = field(default_factory=Storage)
