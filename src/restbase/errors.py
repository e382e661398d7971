"""
Restbase - Exceptions.

Runtime failures (network, HTTP status) never raise: they come back as
Result.error. ConfigurationError is the exception: it flags a caller bug
and is raised before any request is sent.
"""

from typing import Any


class ConfigurationError(ValueError):
    """Caller misuse detected before any network call."""


class ApiRequestError(Exception):
    """
    An error Result converted into an exception.

    Only raised by Result.raise_for_error(), for callers that prefer
    exceptions over inspecting result.error.
    """

    def __init__(self, message: str, status: int = 0, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def __repr__(self) -> str:
        return f"ApiRequestError(status={self.status}, message={self.message!r})"
