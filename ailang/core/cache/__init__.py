"""Translation cache package.

Provides the expiring, size-bounded translation cache.
"""

from __future__ import annotations

from ailang.core.cache.manager import TranslationCacheManager

__all__: list[str] = ["TranslationCacheManager"]
