from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    CONFIG = "config"
    INPUT = "input"
    RUNTIME = "runtime"
    STORAGE = "storage"


DEFAULT_EXIT_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.RUNTIME: 1,
    ErrorCategory.CONFIG: 2,
    ErrorCategory.INPUT: 3,
    ErrorCategory.STORAGE: 4,
}


@dataclass
class SubtrackError(Exception):
    """Base exception for SubTrack with standardized categories."""

    message: str
    category: ErrorCategory = ErrorCategory.RUNTIME
    exit_code: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.exit_code is None:
            self.exit_code = DEFAULT_EXIT_CODES.get(self.category, 1)

    def label(self) -> str:
        return {
            ErrorCategory.CONFIG: "Configuration error",
            ErrorCategory.INPUT: "Input error",
            ErrorCategory.RUNTIME: "Runtime error",
            ErrorCategory.STORAGE: "Storage error",
        }.get(self.category, "Error")


class InputError(SubtrackError):
    """Raised when caller-supplied data cannot be used."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.INPUT,
            exit_code=exit_code,
        )


class MalformedTimestampError(InputError):
    """Raised when a timestamp string does not match HH:MM:SS.mmm."""


class InvalidTimeRangeError(InputError):
    """Raised when a cue would end at or before its start."""


class SubtitleFormatError(InputError):
    """Raised when an SRT/WebVTT document cannot be parsed."""


class ConfigurationError(SubtrackError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            exit_code=exit_code,
        )


class StorageError(SubtrackError):
    """Raised when the key-value store cannot be read or written."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.STORAGE,
            exit_code=exit_code,
        )
