"""Utility modules for AiLang.

This package provides logging setup, file handling, string manipulation and background task tracking.
"""

from ailang.utils.file_utils import FileUtils
from ailang.utils.logger_utils import LoggerUtils
from ailang.utils.string_utils import StringUtils
from ailang.utils.task_queue import BackgroundTaskQueue

__all__: list[str] = ["BackgroundTaskQueue", "FileUtils", "LoggerUtils", "StringUtils"]
