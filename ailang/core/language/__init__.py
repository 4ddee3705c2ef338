"""Language registry and current-language preference."""

from __future__ import annotations

from ailang.core.language.const_languages import RTL_LANGUAGE_CODES, SUPPORTED_LANGUAGE_CODES, SUPPORTED_LANGUAGES
from ailang.core.language.manager import LanguageManager

__all__: list[str] = ["RTL_LANGUAGE_CODES", "SUPPORTED_LANGUAGES", "SUPPORTED_LANGUAGE_CODES", "LanguageManager"]
