"""Unit tests for gemini_client module."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar

import aiohttp
import pytest

from ailang.core.trans import gemini_client as gc
from ailang.core.trans.interface import (
    ApiError,
    ConfigError,
    NetworkError,
    ParseError,
    RateLimitError,
    TranslationErrorKind,
)

if TYPE_CHECKING:
    from ailang.models.config_models import Config


class DummyResponse:
    def __init__(self, status: int, text: str, reason: str = "OK") -> None:
        self.status: int = status
        self.reason: str = reason
        self._text: str = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> DummyResponse:
        return self

    async def __aexit__(self, *exc: object) -> None:
        _ = exc


class DummySession:
    responses: ClassVar[list[DummyResponse | Exception]] = []
    calls: ClassVar[list[dict[str, Any]]] = []

    def __init__(self, *args, **kwargs) -> None:
        _ = args, kwargs
        self.closed = False

    def post(self, **kwargs: Any) -> DummyResponse:
        type(self).calls.append(kwargs)
        response = type(self).responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def patch_session(monkeypatch: pytest.MonkeyPatch) -> None:
    DummySession.responses = []
    DummySession.calls = []
    monkeypatch.setattr(gc.aiohttp, "ClientSession", DummySession)


def _gemini_body(text: str) -> str:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _client(config: Config) -> tuple[gc.GeminiTranslationClient, list[float]]:
    client = gc.GeminiTranslationClient(config)
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    client._sleep = fake_sleep
    return client, sleeps


def test_missing_api_key_raises_config_error(config: Config) -> None:
    config.TRANSLATION.API_KEY = "  "
    with pytest.raises(ConfigError) as exc_info:
        gc.GeminiTranslationClient(config)
    assert exc_info.value.kind is TranslationErrorKind.CONFIG


def test_url_is_built_from_model(config: Config) -> None:
    client = gc.GeminiTranslationClient(config)
    assert client.url == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    )


def test_prompt_contains_rules_and_payload() -> None:
    prompt: str = gc.build_prompt({"greeting": "Hello, {name}!"}, "French")

    assert "from English to French" in prompt
    assert "Maintain any placeholders like {name}, {count}, etc." in prompt
    assert 'If a value contains "|" for pluralization, translate both parts' in prompt
    assert '{"greeting": "Hello, {name}!"}' in prompt
    assert prompt.endswith("Return only the translated JSON object:")


def test_language_name_uses_prompt_overrides() -> None:
    assert gc.GeminiTranslationClient.language_name("zh") == "Chinese (Simplified)"
    assert gc.GeminiTranslationClient.language_name("de") == "German"
    assert gc.GeminiTranslationClient.language_name("xx") == "xx"


def test_process_response_plain_json() -> None:
    body: str = _gemini_body('{"hello": "Hola"}')
    assert gc.GeminiTranslationClient._process_response(body) == {"hello": "Hola"}


@pytest.mark.parametrize(
    "fenced",
    [
        '```json\n{"hello": "Hola"}\n```',
        '```\n{"hello": "Hola"}\n```',
        '{"hello": "Hola"}\n```',
        '```json\n{"hello": "Hola"}',
    ],
)
def test_process_response_strips_code_fence(fenced: str) -> None:
    assert gc.GeminiTranslationClient._process_response(_gemini_body(fenced)) == {"hello": "Hola"}


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps({"candidates": []}),
        json.dumps({"candidates": [{"content": {"parts": [{}]}}]}),
        _gemini_body("Sure! Here is your translation."),
        _gemini_body('["Hola"]'),
        _gemini_body('{"count": 3}'),
    ],
)
def test_process_response_raises_parse_error(body: str) -> None:
    with pytest.raises(ParseError):
        gc.GeminiTranslationClient._process_response(body)


@pytest.mark.asyncio
async def test_post_sends_key_and_generation_config(config: Config) -> None:
    client, _ = _client(config)
    DummySession.responses = [DummyResponse(200, _gemini_body('{"hello": "Bonjour"}'))]

    result: dict[str, str] = await client.translate_batch({"hello": "Hello"}, "fr")

    assert result == {"hello": "Bonjour"}
    call: dict[str, Any] = DummySession.calls[0]
    assert call["params"] == {"key": "test-key"}
    assert call["json"]["generationConfig"] == {"temperature": 0.3, "topP": 0.95, "maxOutputTokens": 8192}
    assert "to French" in call["json"]["contents"][0]["parts"][0]["text"]
    assert call["timeout"].total == 30.0
    await client.close()


@pytest.mark.asyncio
async def test_post_maps_429_to_rate_limit(config: Config) -> None:
    client, _ = _client(config)
    DummySession.responses = [DummyResponse(429, "slow down", "Too Many Requests")]

    with pytest.raises(RateLimitError, match="429 Too Many Requests"):
        await client._post(url=client.url, params={}, body={}, timeout=1.0)


@pytest.mark.asyncio
async def test_post_maps_error_status_to_api_error(config: Config) -> None:
    client, _ = _client(config)
    DummySession.responses = [DummyResponse(403, "forbidden", "Forbidden")]

    with pytest.raises(ApiError) as exc_info:
        await client._post(url=client.url, params={}, body={}, timeout=1.0)

    assert exc_info.value.status == 403
    assert exc_info.value.body == "forbidden"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [TimeoutError(), ConnectionResetError(), aiohttp.ClientConnectionError("refused")])
async def test_post_maps_transport_failures_to_network_error(config: Config, error: Exception) -> None:
    client, _ = _client(config)
    DummySession.responses = [error]

    with pytest.raises(NetworkError):
        await client._post(url=client.url, params={}, body={}, timeout=1.0)


@pytest.mark.asyncio
async def test_batches_are_sent_in_order(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sleeps = _client(config)
    chunks: list[list[str]] = []

    async def fake_request(request: Any) -> dict[str, str]:
        chunks.append(list(request.strings))
        return {key: text.upper() for key, text in request.strings.items()}

    monkeypatch.setattr(client, "_request_translation", fake_request)
    strings: dict[str, str] = {f"key{index:03d}": f"text {index}" for index in range(120)}

    result: dict[str, str] = await client.translate_batch(strings, "de")

    assert [len(chunk) for chunk in chunks] == [50, 50, 20]
    assert [key for chunk in chunks for key in chunk] == list(strings)
    assert result == {key: text.upper() for key, text in strings.items()}
    assert sleeps == [0.1, 0.1]


@pytest.mark.asyncio
async def test_single_chunk_has_no_batch_delay(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sleeps = _client(config)

    async def fake_request(request: Any) -> dict[str, str]:
        return dict(request.strings)

    monkeypatch.setattr(client, "_request_translation", fake_request)

    await client.translate_batch({"a": "A"}, "de")

    assert sleeps == []


@pytest.mark.asyncio
async def test_retry_succeeds_on_third_attempt(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sleeps = _client(config)
    attempts: list[int] = []

    async def flaky_request(request: Any) -> dict[str, str]:
        attempts.append(1)
        if len(attempts) < 3:
            msg = "connection refused"
            raise NetworkError(msg)
        return {key: f"ok:{text}" for key, text in request.strings.items()}

    monkeypatch.setattr(client, "_request_translation", flaky_request)

    result: dict[str, str] = await client.translate_batch({"hello": "Hello"}, "es")

    assert result == {"hello": "ok:Hello"}
    assert len(attempts) == 3
    assert sleeps == [1.0, 2.0]
    assert sleeps[1] >= sleeps[0]


@pytest.mark.asyncio
async def test_rate_limit_waits_twice_as_long(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sleeps = _client(config)
    errors: list[Exception] = [RateLimitError("429"), ParseError("bad json")]

    async def limited_request(request: Any) -> dict[str, str]:
        if errors:
            raise errors.pop(0)
        return dict(request.strings)

    monkeypatch.setattr(client, "_request_translation", limited_request)

    await client.translate_batch({"hello": "Hello"}, "es")

    assert sleeps == [2.0, 2.0]


@pytest.mark.asyncio
async def test_retry_delay_is_capped(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    config.TRANSLATION.RETRY_COUNT = 6
    config.TRANSLATION.MAX_RETRY_DELAY = 5.0
    client, sleeps = _client(config)

    async def failing_request(request: Any) -> dict[str, str]:
        _ = request
        raise NetworkError("down")

    monkeypatch.setattr(client, "_request_translation", failing_request)

    with pytest.raises(NetworkError):
        await client.translate_batch({"hello": "Hello"}, "es")

    assert sleeps == [1.0, 2.0, 4.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_exhausted_retries_raise_last_error(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sleeps = _client(config)
    errors: list[Exception] = [NetworkError("first"), ParseError("second"), ApiError("third", status=500)]

    async def failing_request(request: Any) -> dict[str, str]:
        _ = request
        raise errors.pop(0)

    monkeypatch.setattr(client, "_request_translation", failing_request)

    with pytest.raises(ApiError, match="third"):
        await client.translate_batch({"hello": "Hello"}, "es")

    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_translate_batch_outcome_reports_kind(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    config.TRANSLATION.RETRY_COUNT = 1
    client, _ = _client(config)

    async def failing_request(request: Any) -> dict[str, str]:
        _ = request
        raise RateLimitError("429")

    monkeypatch.setattr(client, "_request_translation", failing_request)

    outcome = await client.translate_batch_outcome({"hello": "Hello"}, "es")

    assert not outcome
    assert outcome.kind is TranslationErrorKind.RATE_LIMIT
    assert outcome.translations == {}


@pytest.mark.asyncio
async def test_translate_single_string(config: Config) -> None:
    client, _ = _client(config)
    DummySession.responses = [DummyResponse(200, _gemini_body('```json\n{"single": "Hallo"}\n```'))]

    assert await client.translate("Hello", "de") == "Hallo"
    assert '{"single": "Hello"}' in DummySession.calls[0]["json"]["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_close_closes_session(config: Config) -> None:
    async with gc.GeminiTranslationClient(config) as client:
        session = client._session
    assert session.closed is True
