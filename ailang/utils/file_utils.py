from __future__ import annotations

import json
import os
from pathlib import Path

__all__: list[str] = [
    "FileMissingError",
    "FileUtils",
    "FileUtilsError",
    "InvalidStringsFileError",
    "UnsupportedFileFormatError",
]


class FileUtils:
    """Utility class for locating and reading the files AiLang consumes."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-input path to an absolute path.

        Expands environment variables and ``~``; relative paths are resolved against the
        current working directory.

        Args:
            path (str | Path): The input path (e.g., "~/app/$LOCALE_DIR/strings_en.json").
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: Absolute path.
        """
        user_expanded: Path = Path(os.path.expandvars(str(path))).expanduser()
        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)
        return (Path.cwd() / user_expanded).resolve(strict=strict)

    @staticmethod
    def validate_file_path(file_path: Path, suffix: list[str] | str) -> None:
        """Validate that a file exists and has an allowed suffix.

        Raises:
            FileMissingError: If the file does not exist.
            UnsupportedFileFormatError: If the file's suffix is not in the allowed list.
        """
        if isinstance(suffix, str):
            suffix = [suffix]

        if not file_path.is_file():
            msg = f"File does not exist: {file_path}"
            raise FileMissingError(msg)
        if file_path.suffix.lower() not in [s.lower() for s in suffix]:
            msg = f"Unsupported file format: '{file_path.suffix}'. Supported formats are: {', '.join(suffix)}"
            raise UnsupportedFileFormatError(msg)

    @staticmethod
    def load_strings_file(path: str | Path) -> dict[str, str]:
        """Read a JSON object of string key to string text.

        Args:
            path (str | Path): Path to a ``.json`` file.

        Returns:
            dict[str, str]: The strings, in file order.

        Raises:
            FileMissingError: If the file does not exist.
            UnsupportedFileFormatError: If the file is not a ``.json`` file.
            InvalidStringsFileError: If the content is not a JSON object of strings.
        """
        file_path: Path = FileUtils.resolve_path(path)
        FileUtils.validate_file_path(file_path, ".json")
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            msg = f"Invalid JSON in strings file {file_path}: {err}"
            raise InvalidStringsFileError(msg) from err

        if not isinstance(data, dict):
            msg = f"Strings file must contain a JSON object: {file_path}"
            raise InvalidStringsFileError(msg)
        invalid: list[str] = [key for key, value in data.items() if not isinstance(value, str)]
        if invalid:
            msg = f"Non-string values in strings file {file_path}: {', '.join(invalid[:5])}"
            raise InvalidStringsFileError(msg)
        return data


class FileUtilsError(Exception):
    """Custom exception for FileUtils-related errors."""


class FileMissingError(FileUtilsError):
    """Custom exception for file missing errors."""


class UnsupportedFileFormatError(FileUtilsError):
    """Custom exception for unsupported file format errors."""


class InvalidStringsFileError(FileUtilsError):
    """The strings file is not a JSON object of string values."""
