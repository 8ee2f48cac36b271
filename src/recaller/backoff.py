"""Backoff delay generators.

Every generator maps the number of the attempt that just failed (1-based) to
a delay in integer milliseconds. The exponential family follows
https://www.awsarchitectureblog.com/2015/03/backoff.html.
"""

import math
import random
from typing import Optional, Protocol, Union, runtime_checkable

from .exceptions import InvalidBackoffParameterError

Number = Union[int, float]


@runtime_checkable
class BackoffStrategy(Protocol):
    def get_delay(self, attempt: int) -> int:
        """Returns sleep time in milliseconds after the given attempt (1-based)."""
        ...

    def __call__(self, attempt: int) -> int:
        return self.get_delay(attempt)


def random_between(
    low: Number, high: Number, rng: Optional[random.Random] = None
) -> int:
    """Uniform random integer in ``[low, high]``, both ends inclusive."""
    source = rng if rng is not None else random
    return math.floor(source.random() * (high - low + 1) + low)


def _check_at_least(name: str, value: Number, minimum: Number) -> None:
    if value < minimum:
        raise InvalidBackoffParameterError(name, value, f"must be >= {minimum}")


class ConstantBackoff(BackoffStrategy):
    def __init__(self, ms: int = 5000):
        _check_at_least("ms", ms, 0)
        self.ms = ms

    def get_delay(self, attempt: int) -> int:
        return self.ms

    def __repr__(self) -> str:
        return f"ConstantBackoff(ms={self.ms})"


class ExponentialBackoff(BackoffStrategy):
    """``min(cap, base * factor ** (attempt - 1))``: 1s, 2s, 4s, ... by default."""

    def __init__(self, base: int = 1000, cap: int = 60000, factor: Number = 2):
        _check_at_least("base", base, 0)
        _check_at_least("cap", cap, 0)
        _check_at_least("factor", factor, 1)
        self.base = base
        self.cap = cap
        self.factor = factor

    def get_delay(self, attempt: int) -> int:
        try:
            delay = self.base * self.factor ** (attempt - 1)
        except OverflowError:
            return int(self.cap)
        return int(min(self.cap, delay))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base={self.base}, cap={self.cap}, factor={self.factor})"
        )


class FullJitterBackoff(ExponentialBackoff):
    """Random delay between 0 and the exponential delay."""

    def __init__(
        self,
        base: int = 1000,
        cap: int = 60000,
        factor: Number = 2,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(base=base, cap=cap, factor=factor)
        self.rng = rng

    def get_delay(self, attempt: int) -> int:
        return random_between(0, super().get_delay(attempt), self.rng)


class EqualJitterBackoff(ExponentialBackoff):
    """Keeps half of the exponential delay and randomizes the other half."""

    def __init__(
        self,
        base: int = 1000,
        cap: int = 60000,
        factor: Number = 2,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(base=base, cap=cap, factor=factor)
        self.rng = rng

    def get_delay(self, attempt: int) -> int:
        delay = super().get_delay(attempt)
        # Rounded up so odd delays never go below delay / 2
        half = -(-delay // 2)
        return half + random_between(0, delay - half, self.rng)


class DecorrelatedJitterBackoff(BackoffStrategy):
    """Each delay is drawn from ``[base, previous * times]``, capped at ``cap``.

    The generator is stateful: the attempt number is ignored and every call
    advances the sequence. Sharing one instance between independent retry
    sequences (concurrent or not) interleaves their delays; build a fresh
    instance per sequence, or call :meth:`reset`.
    """

    def __init__(
        self,
        base: int = 1000,
        cap: int = 60000,
        times: Number = 3,
        rng: Optional[random.Random] = None,
    ):
        _check_at_least("base", base, 0)
        _check_at_least("cap", cap, 0)
        _check_at_least("times", times, 1)
        self.base = base
        self.cap = cap
        self.times = times
        self.rng = rng
        self.last_sleep: int = base

    def get_delay(self, attempt: Optional[int] = None) -> int:
        upper = self.last_sleep * self.times
        sleep = int(min(self.cap, random_between(self.base, upper, self.rng)))
        self.last_sleep = sleep
        return sleep

    def __call__(self, attempt: Optional[int] = None) -> int:
        return self.get_delay(attempt)

    def reset(self) -> None:
        self.last_sleep = self.base

    def __repr__(self) -> str:
        return (
            f"DecorrelatedJitterBackoff(base={self.base}, cap={self.cap}, "
            f"times={self.times}, last_sleep={self.last_sleep})"
        )


def constant_backoff(ms: int = 5000) -> ConstantBackoff:
    return ConstantBackoff(ms)


def exponential_backoff(
    base: int = 1000, cap: int = 60000, factor: Number = 2
) -> ExponentialBackoff:
    return ExponentialBackoff(base=base, cap=cap, factor=factor)


def full_jitter_backoff(
    base: int = 1000,
    cap: int = 60000,
    factor: Number = 2,
    rng: Optional[random.Random] = None,
) -> FullJitterBackoff:
    return FullJitterBackoff(base=base, cap=cap, factor=factor, rng=rng)


def equal_jitter_backoff(
    base: int = 1000,
    cap: int = 60000,
    factor: Number = 2,
    rng: Optional[random.Random] = None,
) -> EqualJitterBackoff:
    return EqualJitterBackoff(base=base, cap=cap, factor=factor, rng=rng)


def decorrelated_jitter_backoff(
    base: int = 1000,
    cap: int = 60000,
    times: Number = 3,
    rng: Optional[random.Random] = None,
) -> DecorrelatedJitterBackoff:
    """Build a fresh decorrelated jitter generator; see its class docs on reuse."""
    return DecorrelatedJitterBackoff(base=base, cap=cap, times=times, rng=rng)
