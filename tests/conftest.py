from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import pytest

from ailang.core.storage import MemoryStorage
from ailang.core.trans.gemini_client import GeminiTranslationClient
from ailang.models.config_models import Config

if TYPE_CHECKING:
    from ailang.core.trans.interface import TranslationError
    from ailang.models.translation_models import TranslationRequest


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now: float = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DummyTranslationClient(GeminiTranslationClient):
    """Client whose provider call is replaced by a deterministic fake translation.

    ``errors`` are raised, one per call, before translations start succeeding.
    """

    errors: ClassVar[list[TranslationError]] = []

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.requests: list[TranslationRequest] = []
        self.sleeps: list[float] = []
        self._sleep = self._record_sleep

    async def _record_sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    async def _request_translation(self, request: TranslationRequest) -> dict[str, str]:
        self.requests.append(request)
        if type(self).errors:
            raise type(self).errors.pop(0)
        return {key: f"[{request.target_language}] {text}" for key, text in request.strings.items()}


@pytest.fixture(autouse=True)
def reset_dummy_client() -> None:
    DummyTranslationClient.errors = []


@pytest.fixture
def config() -> Config:
    config = Config()
    config.TRANSLATION.API_KEY = "test-key"
    config.STORAGE.PATH = ""
    config.LANGUAGE.DETECT_DEVICE_LANGUAGE = False
    return config


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(config: Config) -> DummyTranslationClient:
    return DummyTranslationClient(config)
