from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import pytest

from ailang.models.config_models import General
from ailang.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    LoggerUtils.reset()
    yield
    LoggerUtils.reset()


def test_get_logger_uses_namespace() -> None:
    assert LoggerUtils.get_logger("ailang.core.translator").name == "AiLang.ailang.core.translator"
    assert LoggerUtils.get_logger().name == "AiLang"


def test_configure_without_log_file() -> None:
    namespace_logger: logging.Logger = LoggerUtils.configure(General())

    assert LoggerUtils.is_configured() is True
    assert namespace_logger.level == logging.INFO
    assert [type(handler) for handler in namespace_logger.handlers] == [logging.StreamHandler]
    assert namespace_logger.handlers[0].level == logging.WARNING


def test_configure_writes_debug_log_file(tmp_path: Path) -> None:
    log_path: Path = tmp_path / "ailang.log"
    namespace_logger: logging.Logger = LoggerUtils.configure(General(DEBUG=True, LOG_FILE=str(log_path)))

    LoggerUtils.get_logger("tests").debug("cache loaded")
    for handler in namespace_logger.handlers:
        handler.flush()

    assert namespace_logger.level == logging.DEBUG
    assert any(isinstance(handler, RotatingFileHandler) for handler in namespace_logger.handlers)
    assert "cache loaded" in log_path.read_text(encoding="utf-8")


def test_unopenable_log_file_is_reported(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    namespace_logger: logging.Logger = LoggerUtils.configure(General(LOG_FILE=str(tmp_path / "missing" / "a.log")))

    assert not any(isinstance(handler, RotatingFileHandler) for handler in namespace_logger.handlers)
    assert "file logging disabled" in caplog.text


def test_configure_twice_adds_no_handlers() -> None:
    LoggerUtils.configure(General())
    namespace_logger: logging.Logger = LoggerUtils.configure(General(DEBUG=True))

    assert len(namespace_logger.handlers) == 1
    assert namespace_logger.level == logging.INFO


def test_warnings_are_logged_and_restored(caplog: pytest.LogCaptureFixture) -> None:
    original = warnings.showwarning
    LoggerUtils.configure(General())

    warnings.showwarning("old setting", DeprecationWarning, "ailang.ini", 3)
    LoggerUtils.reset()

    assert "ailang.ini:3: DeprecationWarning: old setting" in caplog.text
    assert warnings.showwarning is original
    assert LoggerUtils.get_logger().handlers == []
