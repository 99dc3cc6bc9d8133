"""
Retry with exponential backoff.

retry() runs a zero-argument operation and retries it on failure, waiting
initial_delay_ms * backoff_multiplier ** (attempt - 1) between attempts.
The sleep function, the retry predicate and the diagnostic sink are all
injectable so the loop can be tested without real delays.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from imagestudio.core.classifier import is_retryable
from imagestudio.diagnostics import DiagnosticSink, default_sink
from imagestudio.utils.exceptions import CancellationError, ProviderError, ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try an operation and how long to wait in between."""

    max_attempts: int = 4
    initial_delay_ms: int = 1000
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError(
                f"max_attempts must be at least 1, got {self.max_attempts}",
                field="max_attempts",
            )
        if self.initial_delay_ms < 0:
            raise ValidationError(
                f"initial_delay_ms must not be negative, got {self.initial_delay_ms}",
                field="initial_delay_ms",
            )
        if self.backoff_multiplier < 1:
            raise ValidationError(
                f"backoff_multiplier must be at least 1, got {self.backoff_multiplier}",
                field="backoff_multiplier",
            )

    def delay_ms(self, attempt: int) -> float:
        """Delay in milliseconds after the given failed attempt (1-based)."""
        return self.initial_delay_ms * self.backoff_multiplier ** (attempt - 1)


def backoff_delays(policy: RetryPolicy) -> list[float]:
    """Return the delays (ms) slept between attempts when every attempt fails."""
    return [policy.delay_ms(attempt) for attempt in range(1, policy.max_attempts)]


def is_retryable_error(exc: BaseException) -> bool:
    """Default retry predicate: retry provider errors unless they are unauthorized.

    Anything that is not a ProviderError is a bug or a caller decision and is
    never retried.
    """
    return isinstance(exc, ProviderError) and is_retryable(exc.kind)


def retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Callable[[float], None] = time.sleep,
    cancel_check: Callable[[], bool] | None = None,
    sink: DiagnosticSink | None = None,
) -> T:
    """
    Run operation, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument callable producing the result or raising
        policy: Attempt count and delay series
        should_retry: Predicate deciding whether an exception may be retried
        sleep: Called with the delay in seconds between attempts
        cancel_check: Optional callable returning True to stop before the next attempt
        sink: Diagnostic sink for retry events

    Returns:
        The first successful result of operation

    Raises:
        The last exception raised by operation when it is not retryable or
        attempts are exhausted; CancellationError if cancel_check returned True.
    """
    sink = sink or default_sink()
    attempt = 1
    while True:
        try:
            return operation()
        except Exception as exc:
            if not should_retry(exc):
                sink.emit("retry.not_retryable", attempt=attempt, error=type(exc).__name__)
                raise
            if attempt >= policy.max_attempts:
                sink.emit("retry.exhausted", attempts=attempt, error=type(exc).__name__)
                raise
            delay_ms = policy.delay_ms(attempt)
            sink.emit(
                "retry.scheduled",
                attempt=attempt,
                delay_ms=delay_ms,
                error=type(exc).__name__,
            )
            if cancel_check is not None and cancel_check():
                raise CancellationError("Request was cancelled.") from exc
            sleep(delay_ms / 1000.0)
            if cancel_check is not None and cancel_check():
                raise CancellationError("Request was cancelled.") from exc
            attempt += 1


__all__ = ["RetryPolicy", "backoff_delays", "is_retryable_error", "retry"]
