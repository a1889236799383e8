from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from obs_storage.core.errors import (
    NON_RETRYABLE_ERROR_TYPES,
    ObsRemoteError,
    RetryLogicError,
    classify_error,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    retryable_exceptions: tuple[type[Exception], ...] = (ObsRemoteError,)


def calculate_backoff(attempt: int, base_delay: float) -> float:
    # attempt is 1-indexed: 1 -> base, 2 -> 2 * base, 3 -> 4 * base
    return base_delay * (2 ** (attempt - 1))


def should_retry(error: Exception, attempt: int, policy: RetryPolicy) -> bool:
    if not isinstance(error, policy.retryable_exceptions):
        return False
    if classify_error(error) in NON_RETRYABLE_ERROR_TYPES:
        return False
    return attempt < policy.max_attempts


class RetryExecutor:
    """Runs a single remote operation with bounded exponential backoff."""

    def __init__(self, policy: RetryPolicy):
        self.policy = policy

    def execute(self, operation: Callable[[], T]) -> T:
        attempt = 0
        last_error: Exception | None = None

        while attempt < self.policy.max_attempts:
            attempt += 1
            try:
                return operation()
            except Exception as error:  # noqa: BLE001 - explicit retry behavior
                if not should_retry(error, attempt, self.policy):
                    raise
                last_error = error
                delay = calculate_backoff(attempt, self.policy.base_delay_seconds)
                logger.warning(
                    "Retrying OBS operation after attempt %d failed (%s); sleeping %.2fs",
                    attempt,
                    error,
                    delay,
                )
                time.sleep(delay)

        if last_error is None:
            raise RetryLogicError("Unexpected error in retry logic")
        raise last_error

