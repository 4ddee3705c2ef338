"""Batched translation through the Google Gemini ``generateContent`` API.

Strings are sent as one JSON object per chunk; the model is asked to return the same object
with translated values. Each chunk is retried with exponential backoff.
"""

from __future__ import annotations

import asyncio
import json
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, ClassVar, Final, Self

import aiohttp

from ailang.core.language.const_languages import SUPPORTED_LANGUAGES
from ailang.core.trans.interface import (
    ApiError,
    ConfigError,
    NetworkError,
    ParseError,
    RateLimitError,
    TranslationError,
    TranslationOutcome,
)
from ailang.models.translation_models import TranslationRequest
from ailang.utils.logger_utils import LoggerUtils
from ailang.utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable, Mapping

    from ailang.models.config_models import Config

__all__: list[str] = ["GeminiTranslationClient", "build_prompt"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PROMPT_TEMPLATE: Final[str] = """You are a professional translator. \
Translate the following JSON object values from {source_name} to {language_name}.

IMPORTANT RULES:
1. Only translate the VALUES, keep the KEYS exactly the same
2. Maintain any placeholders like {{name}}, {{count}}, etc.
3. Return ONLY valid JSON, no explanations
4. Keep the same JSON structure
5. Translate naturally, considering context
6. If a value contains "|" for pluralization, translate both parts

JSON to translate:
{strings_json}

Return only the translated JSON object:"""

# Names the model handles better than the registry display names
_PROMPT_LANGUAGE_NAMES: Final[dict[str, str]] = {"zh": "Chinese (Simplified)"}

SINGLE_KEY: Final[str] = "single"


def build_prompt(strings: Mapping[str, str], language_name: str, source_name: str = "English") -> str:
    """Build the translation instruction for one chunk.

    Args:
        strings (Mapping[str, str]): Key to source text.
        language_name (str): Target language display name.
        source_name (str): Source language display name.

    Returns:
        str: Prompt text.
    """
    return PROMPT_TEMPLATE.format(
        source_name=source_name,
        language_name=language_name,
        strings_json=json.dumps(dict(strings), ensure_ascii=False),
    )


class GeminiTranslationClient:
    """Translation client for the Gemini ``generateContent`` endpoint.

    Attributes:
        ENDPOINT_SUFFIX (ClassVar[str]): Method path appended to the model URL.
        BODY_PREVIEW_LIMIT (ClassVar[int]): Maximum body length quoted in error messages.
    """

    ENDPOINT_SUFFIX: ClassVar[str] = ":generateContent"
    BODY_PREVIEW_LIMIT: ClassVar[int] = 500

    def __init__(self, config: Config, *, api_key: str | None = None) -> None:
        """Initialize the client.

        Args:
            config (Config): Application configuration (TRANSLATION section is used).
            api_key (str | None): Overrides ``TRANSLATION.API_KEY``.

        Raises:
            ConfigError: If no API key is available.
        """
        settings = config.TRANSLATION
        self._api_key: str = (api_key if api_key is not None else settings.API_KEY).strip()
        if not self._api_key:
            msg: str = "An API key is required for the translation client."
            raise ConfigError(msg)

        self.url: str = f"{settings.API_URL.rstrip('/')}/{settings.MODEL}{self.ENDPOINT_SUFFIX}"
        self.batch_size: int = settings.BATCH_SIZE
        self.timeout: float = settings.TIMEOUT
        self.retry_count: int = settings.RETRY_COUNT
        self.retry_delay: float = settings.RETRY_DELAY
        self.max_retry_delay: float = settings.MAX_RETRY_DELAY
        self.batch_delay: float = settings.BATCH_DELAY
        self.source_name: str = settings.SOURCE_LANGUAGE_NAME
        self.generation_config: dict[str, float | int] = {
            "temperature": settings.TEMPERATURE,
            "topP": settings.TOP_P,
            "maxOutputTokens": settings.MAX_OUTPUT_TOKENS,
        }
        self._sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
        self.__session: aiohttp.ClientSession | None = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Current HTTP session; a new one is created when missing or closed."""
        if self.__session is None or self.__session.closed:
            self.__session = aiohttp.ClientSession()
        return self.__session

    async def close(self) -> None:
        logger.debug("'%s': 'termination process'", self.__class__.__name__)
        if self.__session is not None and not self.__session.closed:
            await self.__session.close()
        self.__session = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    @staticmethod
    def language_name(code: str) -> str:
        """Display name used in the prompt; unknown codes are passed through."""
        if code in _PROMPT_LANGUAGE_NAMES:
            return _PROMPT_LANGUAGE_NAMES[code]
        return next((lang.name for lang in SUPPORTED_LANGUAGES if lang.code == code), code)

    async def translate(self, text: str, target_language: str) -> str | None:
        """Translate one string.

        Args:
            text (str): Source text.
            target_language (str): Target language code.

        Returns:
            str | None: Translation, or None when the model omitted it.

        Raises:
            TranslationError: When every attempt failed.
        """
        translations: dict[str, str] = await self.translate_batch({SINGLE_KEY: text}, target_language)
        return translations.get(SINGLE_KEY)

    async def translate_batch(self, strings: Mapping[str, str], target_language: str) -> dict[str, str]:
        """Translate many strings, chunked by ``batch_size``.

        Chunks are sent one after another in input order with ``batch_delay`` seconds between them.

        Args:
            strings (Mapping[str, str]): Key to source text.
            target_language (str): Target language code.

        Returns:
            dict[str, str]: Merged key to translated text over all chunks.

        Raises:
            TranslationError: When any chunk exhausts its retries. Earlier chunks' results are discarded.
        """
        requests: list[TranslationRequest] = self.split_requests(strings, target_language)
        result: dict[str, str] = {}
        for index, request in enumerate(requests):
            if index > 0:
                await self._sleep(self.batch_delay)
            logger.debug(
                "Translating chunk %d/%d (%d string(s)) to '%s'",
                index + 1,
                len(requests),
                len(request.strings),
                target_language,
            )
            result.update(await self._translate_with_retry(request))
        return result

    async def translate_batch_outcome(self, strings: Mapping[str, str], target_language: str) -> TranslationOutcome:
        """Like ``translate_batch`` but returns failures as a value instead of raising.

        Returns:
            TranslationOutcome: Translations on success, the final error otherwise.
        """
        try:
            return TranslationOutcome(translations=await self.translate_batch(strings, target_language))
        except TranslationError as err:
            return TranslationOutcome(error=err)

    def split_requests(self, strings: Mapping[str, str], target_language: str) -> list[TranslationRequest]:
        """Split the input into order-preserving chunks of at most ``batch_size`` entries."""
        items: list[tuple[str, str]] = list(strings.items())
        return [
            TranslationRequest(strings=dict(items[start : start + self.batch_size]), target_language=target_language)
            for start in range(0, len(items), self.batch_size)
        ]

    async def _translate_with_retry(self, request: TranslationRequest) -> dict[str, str]:
        """Send one chunk, retrying up to ``retry_count`` attempts.

        Rate-limit failures wait twice the current delay, other failures the current delay.
        The delay doubles after every wait, capped at ``max_retry_delay``. There is no wait
        after the final attempt.

        Raises:
            TranslationError: The last failure once attempts are exhausted.
        """
        delay: float = self.retry_delay
        last_error: TranslationError | None = None

        for attempt in range(1, self.retry_count + 1):
            try:
                return await self._request_translation(request)
            except TranslationError as err:
                last_error = err
                logger.warning(
                    "Translation attempt %d/%d for '%s' failed (%s): %s",
                    attempt,
                    self.retry_count,
                    request.target_language,
                    err.kind,
                    err,
                )

            if attempt == self.retry_count:
                break
            await self._sleep(delay * 2 if isinstance(last_error, RateLimitError) else delay)
            delay = min(delay * 2, self.max_retry_delay)

        if last_error is None:
            msg: str = f"Translation failed after {self.retry_count} attempt(s)"
            raise ApiError(msg, status=0)
        raise last_error

    async def _request_translation(self, request: TranslationRequest) -> dict[str, str]:
        prompt: str = build_prompt(request.strings, self.language_name(request.target_language), self.source_name)
        body: dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self.generation_config,
        }
        response_text: str = await self._post(
            url=self.url,
            params={"key": self._api_key},
            body=body,
            timeout=self.timeout,
        )
        return self._process_response(response_text)

    @classmethod
    def _build_body_preview(cls, body: str) -> str:
        body_preview: str = body.strip().replace("\n", "\\n")
        if len(body_preview) > cls.BODY_PREVIEW_LIMIT:
            return f"{body_preview[: cls.BODY_PREVIEW_LIMIT]}..."
        return body_preview

    @staticmethod
    def _format_http_error(status: int, reason: str | None, url: str, *, body_preview: str | None = None) -> str:
        status_reason: str = f"{status} {reason}".strip() if reason else str(status)
        parts: list[str] = [f"HTTP {status_reason} from {url}"]
        if body_preview:
            parts.append(f"Body: {body_preview}")
        return ". ".join(parts)

    async def _post(
        self,
        *,
        url: str,
        params: dict[str, str],
        body: dict[str, Any],
        timeout: float,  # noqa: ASYNC109
    ) -> str:
        """POST a JSON body and return the response text.

        Raises:
            RateLimitError: On HTTP 429.
            ApiError: On any other non-2xx status.
            NetworkError: On connection failure or timeout.
        """
        try:
            async with self._session.post(
                url=url,
                params=params,
                json=body,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                text: str = await response.text()
                if response.status == 429:
                    msg = self._format_http_error(
                        response.status, response.reason, url, body_preview=self._build_body_preview(text)
                    )
                    raise RateLimitError(msg)
                if not 200 <= response.status < 300:
                    body_preview: str = self._build_body_preview(text)
                    msg = self._format_http_error(response.status, response.reason, url, body_preview=body_preview)
                    raise ApiError(msg, status=response.status, body=body_preview)
                return text
        except TimeoutError:
            msg = f"Request timed out after {timeout} seconds"
            raise NetworkError(msg) from None
        except ConnectionResetError:
            msg = "connection to host has been disconnected"
            raise NetworkError(msg) from None
        except aiohttp.ClientError as err:
            raise NetworkError(str(err)) from err

    @staticmethod
    def _process_response(response_text: str) -> dict[str, str]:
        """Extract the translated JSON object from a ``generateContent`` response.

        Raises:
            ParseError: If the response or the embedded JSON is malformed.
        """
        try:
            decoded: Any = json.loads(response_text)
            text: Any = decoded["candidates"][0]["content"]["parts"][0]["text"]
        except JSONDecodeError as err:
            msg = "failed to decode response"
            raise ParseError(msg) from err
        except (KeyError, IndexError, TypeError) as err:
            msg = "No text in response"
            raise ParseError(msg) from err

        if not isinstance(text, str):
            msg = "No text in response"
            raise ParseError(msg)

        try:
            translations: Any = json.loads(StringUtils.strip_code_fence(text))
        except JSONDecodeError as err:
            msg = f"Failed to parse response: {err}"
            raise ParseError(msg) from err

        if not isinstance(translations, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in translations.items()
        ):
            msg = "Failed to parse response: expected a JSON object of strings"
            raise ParseError(msg)
        return translations
