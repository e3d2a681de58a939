"""Bounded retry with exponential backoff."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from exam_predictor.errors import PredictorError, is_retryable

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of a retried call: a value or the last classified error."""

    value: T | None
    error: PredictorError | None
    attempts: int

    @property
    def ok(self) -> bool:
        return self.error is None


def backoff_delay(retry_index: int, base_delay: float) -> float:
    """Delay before retry number ``retry_index`` (0-based): base, 2*base, 4*base, ..."""
    return base_delay * (2**retry_index)


def call_with_retry(
    operation: Callable[[], T],
    max_retries: int,
    base_delay: float,
    should_retry: Callable[[Exception], bool] = is_retryable,
    sleep: Callable[[float], None] = time.sleep,
    on_status: Callable[[str], None] | None = None,
) -> RetryOutcome[T]:
    """Run ``operation`` up to ``max_retries + 1`` times; never raises PredictorError."""

    def emit(message: str) -> None:
        if on_status:
            on_status(message)

    last_error: PredictorError | None = None
    attempts = 0
    for retry_index in range(max(max_retries, 0) + 1):
        attempts += 1
        try:
            return RetryOutcome(value=operation(), error=None, attempts=attempts)
        except PredictorError as exc:
            last_error = exc
            if retry_index >= max_retries or not should_retry(exc):
                break
            delay = backoff_delay(retry_index, base_delay)
            emit(f"Attempt {attempts} failed: {exc} Retrying in {delay:g}s.")
            sleep(delay)
    return RetryOutcome(value=None, error=last_error, attempts=attempts)
