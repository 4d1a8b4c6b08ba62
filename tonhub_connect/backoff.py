"""Bounded exponential backoff for relay calls."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .errors import TonhubTransportError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_FAILURES = 5
DEFAULT_MIN_DELAY = 0.25
DEFAULT_MAX_DELAY = 1.0

# Failures below this count are expected noise and only logged at debug
_QUIET_FAILURES = 3


def backoff_delay(failures: int, min_delay: float, max_delay: float) -> float:
    """Randomized exponential delay for the given failure count."""
    ceiling = min(min_delay * (2**failures), max_delay)
    return random.uniform(min_delay, max(ceiling, min_delay))


async def backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_failures: int = DEFAULT_MAX_FAILURES,
    min_delay: float = DEFAULT_MIN_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    retry_on: tuple[type[BaseException], ...] = (TonhubTransportError,),
) -> T:
    """Run ``operation`` until it succeeds, retrying transport failures.

    Args:
        operation: Factory returning a fresh awaitable per attempt.
        max_failures: Failures tolerated before the last error is re-raised.
        min_delay: Lower bound of the retry delay (seconds).
        max_delay: Upper bound of the retry delay (seconds).
        retry_on: Exception types considered retryable. Anything else
            propagates immediately.

    Raises:
        The last retryable error once ``max_failures`` is reached.
    """
    failures = 0
    while True:
        try:
            return await operation()
        except retry_on as err:
            failures += 1
            if failures >= max_failures:
                _LOGGER.error("Giving up after %d failures: %s", failures, err)
                raise
            delay = backoff_delay(failures, min_delay, max_delay)
            if failures > _QUIET_FAILURES:
                _LOGGER.warning(
                    "Relay call failed (attempt %d), retrying in %.2fs: %s",
                    failures,
                    delay,
                    err,
                )
            else:
                _LOGGER.debug("Relay call failed (attempt %d): %s", failures, err)
            await asyncio.sleep(delay)
