"""
Error classification for provider responses.

Maps an HTTP status (or the absence of one) to an ErrorKind, decides which
kinds may be retried, and provides the short message shown to users for each
kind. Raw provider bodies never appear in those messages.
"""

from typing import Any

from imagestudio.utils.exceptions import ErrorKind

_USER_MESSAGES = {
    ErrorKind.UNAUTHORIZED: "Authentication failed. Please check your API key.",
    ErrorKind.RATE_LIMITED: "API rate limit exceeded. Please try again later.",
    ErrorKind.INVALID_REQUEST: (
        "Invalid request. The image may be too large or in an unsupported format."
    ),
    ErrorKind.PROVIDER_UNAVAILABLE: (
        "The image service is temporarily unavailable. Please try again later."
    ),
    ErrorKind.UNKNOWN: "The request failed. Please check your connection and try again.",
}


def classify(status: int | None, body: Any = None) -> ErrorKind:
    """
    Classify a failed request.

    Args:
        status: HTTP status code, or None/0 for network-level failures
        body: Provider error body; accepted for diagnostics, the status decides

    Returns:
        The ErrorKind for the status
    """
    if not status:
        return ErrorKind.UNKNOWN
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status == 400:
        return ErrorKind.INVALID_REQUEST
    if 500 <= status <= 599:
        return ErrorKind.PROVIDER_UNAVAILABLE
    return ErrorKind.UNKNOWN


def is_retryable(kind: ErrorKind) -> bool:
    """Return False only for UNAUTHORIZED; every other kind may be retried."""
    return kind is not ErrorKind.UNAUTHORIZED


def user_message(kind: ErrorKind) -> str:
    """Return the short user-facing message for an error kind."""
    return _USER_MESSAGES[kind]


__all__ = ["classify", "is_retryable", "user_message"]
