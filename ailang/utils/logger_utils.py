from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, TextIO

if TYPE_CHECKING:
    from collections.abc import Callable

    from ailang.models.config_models import General

__all__: list[str] = ["LoggerUtils"]

_LOG_FILE_SIZE: Final[int] = 1 * 1024 * 1024  # 1MB
_LOG_BACKUP_COUNT: Final[int] = 3

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "AiLang"

CONSOLE_FORMAT: Final[str] = "%(levelname)s: %(message)s"
FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)-40s\t%(funcName)s\t%(message)s"


class LoggerUtils:
    """Process-wide logging setup for the AiLang namespace.

    Library modules only ever call ``LoggerUtils.get_logger(__name__)``. Handlers are attached once,
    from the ``GENERAL`` configuration section, by whoever calls ``configure`` (normally the
    command-line entry point). Until then records propagate to the standard ``logging`` root untouched.
    """

    _NAMESPACE: ClassVar[str] = DEFAULT_NAMESPACE
    _handlers: ClassVar[list[logging.Handler]] = []
    _previous_showwarning: ClassVar[Callable[..., None] | None] = None

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls._handlers)

    @classmethod
    def configure(cls, general: General) -> logging.Logger:
        """Attach the console handler and, when ``LOG_FILE`` is set, a rotating file handler.

        The console shows WARNING and above; the file receives everything down to DEBUG.
        ``DEBUG = True`` lowers the namespace level to DEBUG. Calling it again is a no-op.

        Args:
            general (General): The ``GENERAL`` configuration section.

        Returns:
            logging.Logger: The namespace logger.
        """
        namespace_logger: logging.Logger = cls.get_logger()
        if cls.is_configured():
            return namespace_logger

        namespace_logger.setLevel(logging.DEBUG if general.DEBUG else DEFAULT_LOG_LEVEL)

        console_handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(Formatter(CONSOLE_FORMAT))
        cls._attach(namespace_logger, console_handler)

        if general.LOG_FILE.strip():
            file_handler: RotatingFileHandler | None = cls._open_log_file(general.LOG_FILE.strip())
            if file_handler is not None:
                cls._attach(namespace_logger, file_handler)
            else:
                namespace_logger.error("Cannot open log file '%s'; file logging disabled.", general.LOG_FILE)

        cls._previous_showwarning = warnings.showwarning
        warnings.showwarning = cls._warning_to_log
        namespace_logger.debug("Logging configured (debug: %s, file: '%s')", general.DEBUG, general.LOG_FILE)
        return namespace_logger

    @classmethod
    def reset(cls) -> None:
        """Detach and close every handler added by ``configure`` and restore ``warnings.showwarning``."""
        namespace_logger: logging.Logger = cls.get_logger()
        for handler in cls._handlers:
            namespace_logger.removeHandler(handler)
            handler.close()
        cls._handlers = []
        namespace_logger.setLevel(logging.NOTSET)
        if cls._previous_showwarning is not None:
            warnings.showwarning = cls._previous_showwarning
            cls._previous_showwarning = None

    @classmethod
    def _attach(cls, namespace_logger: logging.Logger, handler: logging.Handler) -> None:
        namespace_logger.addHandler(handler)
        cls._handlers.append(handler)

    @staticmethod
    def _open_log_file(filename: str) -> RotatingFileHandler | None:
        try:
            file_handler = RotatingFileHandler(
                filename=filename,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except (FileNotFoundError, PermissionError):
            return None
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(Formatter(FILE_FORMAT))
        return file_handler

    @classmethod
    def _warning_to_log(
        cls,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        # signature of warnings.showwarning
        _ = file, line
        cls.get_logger().warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Get a logger under the AiLang namespace.

        Args:
            name (str | None): Module name. None returns the namespace logger itself.

        Returns:
            logging.Logger: The logger instance.
        """
        if not name:
            return logging.getLogger(LoggerUtils._NAMESPACE)
        return logging.getLogger(f"{LoggerUtils._NAMESPACE}.{name}")
