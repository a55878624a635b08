"""Error hierarchy shared by the pad store, orchestrators and client.

Every error carries a machine-readable ``error_code`` and serializes to the
JSON shape returned by the HTTP API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

__all__ = [
    "ErrorCode",
    "LyricPadError",
    "ConfigurationError",
    "GenerationError",
    "LyricsLookupError",
    "RequestAborted",
    "StorageError",
    "BackendError",
]


class ErrorCode:
    """Constants for error codes used in API responses and logs."""

    CONFIGURATION = "configuration_error"
    GENERATION = "generation_error"
    LOOKUP = "lookup_error"
    ABORTED = "aborted"
    STORAGE = "storage_error"
    BACKEND = "backend_error"


@dataclass
class LyricPadError(Exception):
    """Base exception for all LyricPad failures.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    # Whether callers should log this failure as an error.
    reportable: ClassVar[bool] = True

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON responses."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class ConfigurationError(LyricPadError):
    """A required credential or setting is missing."""

    error_code: str = field(default=ErrorCode.CONFIGURATION)
    message: str = field(default="Required configuration is missing")
    details: dict[str, Any] = field(default_factory=dict)
    setting: str = ""

    @classmethod
    def missing(cls, label: str, setting: str) -> "ConfigurationError":
        return cls(message=f"{label} not configured", setting=setting, details={"setting": setting})


@dataclass
class GenerationError(LyricPadError):
    """The model produced no usable output."""

    error_code: str = field(default=ErrorCode.GENERATION)
    message: str = field(default="No suggestion received from the model")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class LyricsLookupError(LyricPadError):
    """The external lyrics catalog could not be queried.

    Never surfaced to users; the lyrics tool converts it into placeholder text.
    """

    error_code: str = field(default=ErrorCode.LOOKUP)
    message: str = field(default="Lyrics lookup failed")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RequestAborted(LyricPadError):
    """The request was superseded or the client went away.

    This is not a failure: callers suppress any error state for it.
    """

    error_code: str = field(default=ErrorCode.ABORTED)
    message: str = field(default="Request aborted")
    details: dict[str, Any] = field(default_factory=dict)

    reportable: ClassVar[bool] = False


@dataclass
class StorageError(LyricPadError):
    """The local key-value store could not be read or written."""

    error_code: str = field(default=ErrorCode.STORAGE)
    message: str = field(default="Unable to access local storage")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class BackendError(LyricPadError):
    """The suggestion API answered with a non-success status."""

    error_code: str = field(default=ErrorCode.BACKEND)
    message: str = field(default="Suggestion service request failed")
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = None
