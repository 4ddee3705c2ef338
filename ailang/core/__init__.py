"""Core components of AiLang.

This package contains the translation facade, the translation cache, the language preference store,
the translation provider client and durable storage.
"""

from ailang.core.storage import KeyValueStorage, MemoryStorage, SQLiteStorage, StorageError
from ailang.core.translator import AiLang

__all__: list[str] = ["AiLang", "KeyValueStorage", "MemoryStorage", "SQLiteStorage", "StorageError"]
