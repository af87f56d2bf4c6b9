"""Custom exceptions for clearer error handling across the package."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure categories surfaced to callers."""

    RATE_LIMIT = "RATE_LIMIT"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_ERROR = "API_ERROR"
    NO_DATA = "NO_DATA"
    CANCELLED = "CANCELLED"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMIT: "Daily request limit reached for every API key. Try again tomorrow.",
    ErrorKind.NETWORK_ERROR: "Network error. Check your internet connection.",
    ErrorKind.API_ERROR: "The data provider returned an error. Try again later.",
    ErrorKind.NO_DATA: "No data found for this symbol.",
    ErrorKind.CANCELLED: "Request cancelled before it was sent.",
}


def user_message(kind: ErrorKind | str) -> str:
    """Return the user-facing text for an error kind."""
    try:
        return USER_MESSAGES[ErrorKind(kind)]
    except ValueError:
        return USER_MESSAGES[ErrorKind.API_ERROR]


class FinanceError(Exception):
    """Base exception for all package-specific errors."""

    kind: ErrorKind = ErrorKind.API_ERROR


class ConfigError(FinanceError, ValueError):
    """Raised when environment configuration is invalid."""


class StorageError(FinanceError):
    """Raised when the durable key-value store fails."""


class RateLimitError(FinanceError):
    """Raised when no API key has quota left or the provider keeps refusing."""

    kind = ErrorKind.RATE_LIMIT


class ThrottleTimeoutError(RateLimitError):
    """Raised when the request scheduler cannot release a permit in time."""


class RequestCancelledError(FinanceError):
    """Raised when a queued request is cancelled before it was released."""

    kind = ErrorKind.CANCELLED


class NetworkError(FinanceError):
    """Raised when transport or 5xx failures exhaust the retry budget."""

    kind = ErrorKind.NETWORK_ERROR


class ApiError(FinanceError):
    """Raised on non-retryable provider errors (4xx or error payloads)."""

    kind = ErrorKind.API_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
