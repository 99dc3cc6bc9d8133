"""
Error handling and signal management for the CLI.

This module provides utilities for handling exceptions and failed results,
mapping them to appropriate exit codes, and managing cancellation via SIGINT.
"""

import signal
import sys
import threading
from collections.abc import Callable
from typing import NoReturn

import click

from imagestudio import (
    CancellationError,
    ConfigurationError,
    ErrorKind,
    GenerationFailure,
    ImageProcessingError,
    ImageStudioError,
    ProviderError,
    ValidationError,
)
from imagestudio.cli import progress
from imagestudio.cli.utils import (
    EXIT_API_OR_NETWORK,
    EXIT_CANCELLED,
    EXIT_VALIDATION_OR_CONFIG,
)

# Cancellation event; set on SIGINT so cancel_check can be used by library calls
_cancel_event = threading.Event()


def cancel_check() -> bool:
    """Return True if cancellation has been requested."""
    return _cancel_event.is_set()


def handle_sigint(_signum: int, _frame: object) -> None:
    """Signal handler for SIGINT (Ctrl+C) - sets cancellation event."""
    _cancel_event.set()


def reset_cancellation() -> None:
    """Reset the cancellation event for a new operation."""
    _cancel_event.clear()


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map library and known exceptions to (exit_code, user_message)."""
    if isinstance(exc, ValidationError):
        msg = exc.args[0] if exc.args else "Validation failed."
        if getattr(exc, "field", None):
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_VALIDATION_OR_CONFIG, msg)
    if isinstance(exc, ConfigurationError):
        return (EXIT_VALIDATION_OR_CONFIG, exc.args[0] if exc.args else "Invalid configuration.")
    if isinstance(exc, ImageProcessingError):
        return (EXIT_VALIDATION_OR_CONFIG, exc.args[0] if exc.args else "Image processing failed.")
    if isinstance(exc, FileNotFoundError):
        return (EXIT_VALIDATION_OR_CONFIG, str(exc))
    if isinstance(exc, CancellationError):
        return (EXIT_CANCELLED, "Cancelled.")
    if isinstance(exc, ProviderError):
        code = EXIT_VALIDATION_OR_CONFIG if exc.kind is ErrorKind.UNAUTHORIZED else EXIT_API_OR_NETWORK
        return (code, exc.args[0] if exc.args else "API or network error.")
    if isinstance(exc, ImageStudioError):
        return (EXIT_API_OR_NETWORK, exc.args[0] if exc.args else "An error occurred.")
    # Unhandled
    return (EXIT_API_OR_NETWORK, str(exc) if exc.args else "An unexpected error occurred.")


def map_failure_to_exit(failure: GenerationFailure) -> tuple[int, str]:
    """Map a failed GenerationResult to (exit_code, user_message)."""
    if failure.kind is ErrorKind.UNAUTHORIZED:
        return (EXIT_VALIDATION_OR_CONFIG, failure.message)
    return (EXIT_API_OR_NETWORK, failure.message)


def exit_with_failure(failure: GenerationFailure, *, quiet: bool = False) -> NoReturn:
    """Report a failed result and exit with its code."""
    code, msg = map_failure_to_exit(failure)
    if quiet:
        click.echo(msg, err=True)
    else:
        progress.print_failure(failure.kind.value, msg, failure.detail)
    sys.exit(code)


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn(); on exception map to exit code and message, print and sys.exit.
    Used so the command flows stay free of try/except for known errors.
    """
    try:
        fn()
    except (
        ValidationError,
        ConfigurationError,
        ImageProcessingError,
        CancellationError,
        ProviderError,
        FileNotFoundError,
        ImageStudioError,
    ) as e:
        code, msg = map_exception_to_exit(e)
        if code == EXIT_CANCELLED:
            if not quiet:
                progress.print_warning(msg)
        else:
            if quiet:
                click.echo(msg, err=True)
            else:
                progress.print_error(msg)
        sys.exit(code)
    except Exception as e:
        if debug:
            raise
        code, msg = map_exception_to_exit(e)
        if quiet:
            click.echo(msg, err=True)
        else:
            progress.print_error(msg)
        sys.exit(EXIT_API_OR_NETWORK)


def install_sigint_handler() -> signal.Handlers:
    """Install SIGINT handler for cancellation, return old handler."""
    old_handler = signal.signal(signal.SIGINT, handle_sigint)
    return old_handler  # type: ignore[return-value]


def restore_sigint_handler(old_handler: signal.Handlers) -> None:
    """Restore previous SIGINT handler."""
    signal.signal(signal.SIGINT, old_handler)


__all__ = [
    "cancel_check",
    "exit_with_failure",
    "handle_sigint",
    "install_sigint_handler",
    "map_exception_to_exit",
    "map_failure_to_exit",
    "reset_cancellation",
    "restore_sigint_handler",
    "run_with_error_handling",
]
