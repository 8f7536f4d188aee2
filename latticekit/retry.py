"""Retry strategies used while waiting for a transaction receipt."""

from __future__ import annotations

import math
import random
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

T = TypeVar("T")

_NANOS_PER_SECOND = 1_000_000_000
# Shifting beyond 62 bits would overflow a signed 64-bit nanosecond count.
_MAX_BACKOFF_SHIFT = 62

# Settings used when a strategy names no known kind.
_FALLBACK_ATTEMPTS = 10
_FALLBACK_DELAY = 0.1
_FALLBACK_MAX_JITTER = 0.1


class Strategy(str, Enum):
    """How the wait between attempts is chosen."""

    BACKOFF = "BackOff"
    FIXED_INTERVAL = "FixedInterval"
    RANDOM_INTERVAL = "RandomInterval"

    def __str__(self) -> str:
        return self.value


class RetryError(Exception):
    """Raised when every attempt failed; holds the error of each attempt."""

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        lines = "\n".join(f"#{number}: {error}" for number, error in enumerate(self.errors, 1))
        super().__init__(f"All attempts fail:\n{lines}")


def _to_nanos(seconds: float) -> int:
    return round(seconds * _NANOS_PER_SECOND)


def _backoff(n: int, delay: float) -> float:
    delay_ns = _to_nanos(delay)
    if delay_ns <= 0:
        delay_ns = 1
    max_shift = _MAX_BACKOFF_SHIFT - math.floor(math.log2(delay_ns))
    return (delay_ns << min(n, max_shift)) / _NANOS_PER_SECOND


def _jitter(max_jitter: float) -> float:
    jitter_ns = _to_nanos(max_jitter)
    if jitter_ns <= 0:
        raise ValueError("random interval needs a positive max_jitter")
    return random.randrange(jitter_ns) / _NANOS_PER_SECOND


@dataclass
class RetryStrategy:
    """A retry policy: its kind, the number of attempts and the delays, in seconds."""

    strategy: Strategy | str | None = None
    attempts: int = 0
    delay: float = 0.0
    max_jitter: float = 0.0

    def _kind(self) -> Strategy | None:
        try:
            return Strategy(self.strategy)
        except ValueError:
            return None

    def _attempt_count(self) -> int:
        return self.attempts if self._kind() is not None else _FALLBACK_ATTEMPTS

    def delays(self) -> Iterator[float]:
        """Yield the wait in seconds before each retry, one fewer than the attempts."""
        kind = self._kind()
        for n in range(self._attempt_count() - 1):
            if kind is Strategy.BACKOFF:
                yield _backoff(n, self.delay)
            elif kind is Strategy.FIXED_INTERVAL:
                yield self.delay
            elif kind is Strategy.RANDOM_INTERVAL:
                yield _jitter(self.max_jitter)
            else:
                yield _backoff(n, _FALLBACK_DELAY) + _jitter(_FALLBACK_MAX_JITTER)


def new_backoff_retry_strategy(attempts: int, init_delay: float) -> RetryStrategy:
    """An exponential back-off strategy starting at init_delay seconds."""
    return RetryStrategy(Strategy.BACKOFF, attempts, init_delay)


def default_backoff_retry_strategy() -> RetryStrategy:
    """Back-off with 15 attempts starting at 150 ms."""
    return RetryStrategy(Strategy.BACKOFF, 15, 0.15)


def new_fixed_retry_strategy(attempts: int, fixed_delay: float) -> RetryStrategy:
    """A strategy waiting fixed_delay seconds between attempts."""
    return RetryStrategy(Strategy.FIXED_INTERVAL, attempts, fixed_delay)


def default_fixed_retry_strategy() -> RetryStrategy:
    """Fixed interval with 15 attempts every 150 ms."""
    return RetryStrategy(Strategy.FIXED_INTERVAL, 15, 0.15)


def new_random_retry_strategy(attempts: int, base_delay: float, max_jitter: float) -> RetryStrategy:
    """A strategy waiting a random time below max_jitter seconds between attempts."""
    return RetryStrategy(Strategy.RANDOM_INTERVAL, attempts, base_delay, max_jitter)


def default_random_retry_strategy() -> RetryStrategy:
    """Random interval with 15 attempts, 150 ms base delay and up to 500 ms jitter."""
    return RetryStrategy(Strategy.RANDOM_INTERVAL, 15, 0.15, 0.5)


def run_with_retry(
    func: Callable[[], T],
    strategy: RetryStrategy | None = None,
    sleep: Callable[[float], object] = time.sleep,
) -> T:
    """Call func until it returns, following strategy; raise RetryError if all attempts fail."""
    strategy = strategy if strategy is not None else RetryStrategy()
    attempts = strategy._attempt_count()
    delays = strategy.delays()
    errors: list[BaseException] = []
    for attempt in range(attempts):
        try:
            return func()
        except Exception as error:  # noqa: BLE001 - every failure is retried
            errors.append(error)
        if attempt < attempts - 1:
            sleep(next(delays))
    raise RetryError(errors)