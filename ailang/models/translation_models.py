"""Models for translation-related data."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = ["Language", "TranslationRequest", "TranslationResult"]


@dataclass(frozen=True)
class Language:
    """Supported language descriptor.

    Equality and hashing use ``code`` only.

    Attributes:
        code (str): Language code, e.g. 'en' or 'fil'.
        name (str): English display name.
        native_name (str): Name in the language itself.
    """

    code: str
    name: str = field(compare=False)
    native_name: str = field(compare=False)


@dataclass
class TranslationRequest:
    """One chunk sent to the translation provider.

    Attributes:
        strings (dict[str, str]): Ordered key to source text mapping.
        target_language (str): Target language code.
    """

    strings: dict[str, str]
    target_language: str


@dataclass
class TranslationResult:
    """Resolution of a single key for the current language.

    Attributes:
        key (str): Application string key.
        original_text (str): Base-language text, or the key when it has none.
        translated_text (str): Text that ``t`` would return.
        target_language (str): Language the text was resolved for.
        from_cache (bool): Whether the text came from the translation cache or session overlay.
    """

    key: str
    original_text: str
    translated_text: str
    target_language: str
    from_cache: bool = False
