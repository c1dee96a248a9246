from __future__ import annotations

from typing import Optional


class AnalyzerError(Exception):
    """Base class for errors raised by the error analyzer."""


class ConfigurationError(AnalyzerError):
    """Raised when the remote client is missing its credential."""


class RemoteServiceError(AnalyzerError):
    """Raised for any failure talking to the completion service."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(AnalyzerError):
    """Raised when completion text is not a JSON diagnosis object.

    Never escapes `interpret()`; callers get a degraded Diagnosis instead.
    """


class EmptyInputError(AnalyzerError):
    """Raised when the error text is empty after trimming."""


__all__ = [
    "AnalyzerError",
    "ConfigurationError",
    "RemoteServiceError",
    "MalformedResponseError",
    "EmptyInputError",
]
