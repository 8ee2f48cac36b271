import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Coroutine, Mapping
from typing import Any, Callable, Optional, TypeVar, Union

from .config import RetryOptions
from .exceptions import (
    BailedError,
    InvalidBackoffError,
    InvalidObserverError,
    InvalidOperationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

OptionsLike = Union[RetryOptions, Mapping[str, Any], None]


class BailToken:
    """Cancellation token handed to the operation on every attempt.

    Calling the token (or :meth:`bail`) marks the retry sequence for
    termination. The operation keeps running until it returns or raises on its
    own; the orchestrator checks the token once the attempt has completed and,
    if set, fails with :attr:`reason` instead of retrying. Only the first call
    counts.
    """

    def __init__(self) -> None:
        self.bailed = False
        self.reason: Any = None

    def bail(self, reason: Any = None) -> None:
        if self.bailed:
            return
        self.bailed = True
        self.reason = reason

    def __call__(self, reason: Any = None) -> None:
        self.bail(reason)

    def error(self) -> BaseException:
        """The exception the retry sequence fails with after a bail."""
        if isinstance(self.reason, BaseException):
            return self.reason
        if not self.reason:
            return BailedError()
        return BailedError(str(self.reason))


Operation = Callable[[BailToken, int], Union[Awaitable[T], T]]


def _validate(options: RetryOptions) -> RetryOptions:
    if options.onretry is not None and not callable(options.onretry):
        raise InvalidObserverError(options.onretry)
    if options.backoff is not None and not callable(options.backoff):
        raise InvalidBackoffError(options.backoff)
    return options


async def _run(operation: Operation[T], options: RetryOptions) -> T:
    token = BailToken()
    attempt = 0

    while True:
        attempt += 1
        error: Optional[Exception] = None
        try:
            result = operation(token, attempt)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            error = e

        # A bail wins over whatever the attempt itself produced
        if token.bailed:
            logger.debug(f"Operation bailed on attempt {attempt}: {token.reason!r}")
            raise token.error()

        if error is None:
            return result  # type: ignore[return-value]

        if attempt > options.retries:
            logger.debug(f"Attempt {attempt} failed: {error!r}. No retries left")
            raise error

        delay = 0 if options.backoff is None else options.backoff(attempt)

        if options.onretry is not None:
            try:
                outcome = options.onretry(error, attempt, delay)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as observer_error:
                logger.debug(
                    f"onretry handler stopped retrying after attempt {attempt}: {observer_error!r}"
                )
                raise

        logger.debug(f"Attempt {attempt} failed: {error!r}. Retrying in {delay}ms...")
        if delay > 0:
            await asyncio.sleep(delay / 1000.0)


def retry(
    operation: Operation[T], options: OptionsLike = None, **overrides: Any
) -> Coroutine[Any, Any, T]:
    """Run ``operation`` until it succeeds, bails or runs out of retries.

    ``operation`` is called as ``operation(bail, attempt)`` where ``bail`` is a
    :class:`BailToken` and ``attempt`` starts at 1. It may be a coroutine
    function or return a plain value.

    Options (a :class:`RetryOptions`, a mapping, or keyword arguments):

    - ``retries``: additional attempts after the first, default 10.
    - ``backoff``: ``attempt -> delay_ms``, e.g. :func:`exponential_backoff`.
    - ``onretry``: ``(error, attempt, delay_ms)`` called before each retry.
      Raising from it stops retrying and fails with the raised error.

    Invalid arguments raise immediately, before any coroutine is created.
    The returned coroutine resolves to the operation's result, or raises the
    last operation error, the bail reason, or the observer's error.
    """
    if not callable(operation):
        raise InvalidOperationError(operation)
    resolved = _validate(RetryOptions.from_value(options, **overrides))
    return _run(operation, resolved)


class Recaller:
    """Reusable retry policy.

    Note that a stateful backoff such as :class:`DecorrelatedJitterBackoff`
    is shared by every run of the same ``Recaller``.
    """

    def __init__(self, options: OptionsLike = None, **overrides: Any):
        self.options = _validate(RetryOptions.from_value(options, **overrides))

    def run(self, operation: Operation[T]) -> Coroutine[Any, Any, T]:
        return retry(operation, self.options)

    def __call__(self, operation: Operation[T]) -> Coroutine[Any, Any, T]:
        return self.run(operation)

    def __repr__(self) -> str:
        return (
            f"Recaller(retries={self.options.retries}, backoff={self.options.backoff!r}, "
            f"onretry={self.options.onretry!r})"
        )


def recallable(
    options: OptionsLike = None, **overrides: Any
) -> Callable[[Callable[..., Any]], Callable[..., Coroutine[Any, Any, Any]]]:
    """Decorator running ``fn(bail, attempt, *args, **kwargs)`` under :func:`retry`.

    The decorated function is called with ``(*args, **kwargs)`` only.
    """
    recaller = Recaller(options, **overrides)

    def decorator(fn: Callable[..., Any]) -> Callable[..., Coroutine[Any, Any, Any]]:
        if not callable(fn):
            raise InvalidOperationError(fn)

        @functools.wraps(fn)
        async def _wrapped(*args: Any, **kwargs: Any) -> Any:
            return await recaller.run(
                lambda bail, attempt: fn(bail, attempt, *args, **kwargs)
            )

        return _wrapped

    return decorator
