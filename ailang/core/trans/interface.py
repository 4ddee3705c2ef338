"""Translation error taxonomy and the explicit outcome type returned by non-raising client calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar

__all__: list[str] = [
    "ApiError",
    "ConfigError",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "TranslationError",
    "TranslationErrorKind",
    "TranslationOutcome",
]


class TranslationErrorKind(StrEnum):
    NETWORK = "network"
    API = "api"
    RATE_LIMIT = "rate_limit"
    PARSE = "parse"
    CONFIG = "config"


class TranslationError(Exception):
    """An error occurred during the translation process.

    Attributes:
        kind (TranslationErrorKind): Category tag, fixed per subclass.
    """

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.API


class NetworkError(TranslationError):
    """The request never produced an HTTP response (connection failure or timeout)."""

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.NETWORK


class ApiError(TranslationError):
    """The provider answered with a non-success status other than 429.

    Attributes:
        status (int): HTTP status code.
        body (str): Response body preview.
    """

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.API

    def __init__(self, msg: str, *, status: int, body: str = "") -> None:
        super().__init__(msg)
        self.status: int = status
        self.body: str = body


class RateLimitError(TranslationError):
    """The provider answered HTTP 429 Too Many Requests."""

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.RATE_LIMIT


class ParseError(TranslationError):
    """The provider response did not contain a JSON object of translations."""

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.PARSE


class ConfigError(TranslationError):
    """The client is misconfigured (for example, no API key)."""

    kind: ClassVar[TranslationErrorKind] = TranslationErrorKind.CONFIG


@dataclass
class TranslationOutcome:
    """Result of a batch translation that did not raise.

    Exactly one of ``translations`` (on success) or ``error`` (on failure) is meaningful.

    Attributes:
        translations (dict[str, str]): Key to translated text.
        error (TranslationError | None): Failure after retries were exhausted.
    """

    translations: dict[str, str] = field(default_factory=dict)
    error: TranslationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> TranslationErrorKind | None:
        return self.error.kind if self.error is not None else None

    def __bool__(self) -> bool:
        return self.ok
