"""
Custom exceptions for imagestudio.

This module defines the error taxonomy (ErrorKind) and all custom exceptions
used throughout the application.
"""

from enum import Enum


class ErrorKind(Enum):
    """User-facing category of a failed provider request."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    INVALID_REQUEST = "invalid_request"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    UNKNOWN = "unknown"


class ImageStudioError(Exception):
    """Base exception for all imagestudio errors."""

    pass


class ValidationError(ImageStudioError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class ProviderError(ImageStudioError):
    """Raised when a call to a remote provider fails.

    ``kind`` drives retry decisions; ``status_code`` and ``response`` keep the
    raw transport details for diagnostics.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: int = 0,
        response: str = "",
    ) -> None:
        """
        Initialize provider error.

        Args:
            message: Error message (provider text, not shown to end users verbatim)
            kind: Classified error kind
            status_code: HTTP status code (0 when no response was received)
            response: Raw response body (if available)
        """
        self.kind = kind
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class CancellationError(ImageStudioError):
    """Raised when an operation is cancelled by the user."""

    pass


class ConfigurationError(ImageStudioError):
    """Raised when there is a configuration problem."""

    pass


class ImageProcessingError(ImageStudioError):
    """Raised when image processing fails."""

    def __init__(self, message: str, image_path: str = "") -> None:
        """
        Initialize image processing error.

        Args:
            message: Error message
            image_path: Path to the image that caused the error
        """
        self.image_path = image_path
        super().__init__(message)
