from .backoff import (
    BackoffStrategy,
    ConstantBackoff,
    DecorrelatedJitterBackoff,
    EqualJitterBackoff,
    ExponentialBackoff,
    FullJitterBackoff,
    constant_backoff,
    decorrelated_jitter_backoff,
    equal_jitter_backoff,
    exponential_backoff,
    full_jitter_backoff,
    random_between,
)
from .config import RetryOptions
from .exceptions import (
    BailedError,
    InvalidBackoffError,
    InvalidBackoffParameterError,
    InvalidObserverError,
    InvalidOperationError,
    RecallerError,
)
from .retrier import BailToken, Recaller, recallable, retry

__all__ = [
    "retry",
    "Recaller",
    "recallable",
    "BailToken",
    "RetryOptions",
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FullJitterBackoff",
    "EqualJitterBackoff",
    "DecorrelatedJitterBackoff",
    "constant_backoff",
    "exponential_backoff",
    "full_jitter_backoff",
    "equal_jitter_backoff",
    "decorrelated_jitter_backoff",
    "random_between",
    "RecallerError",
    "InvalidOperationError",
    "InvalidObserverError",
    "InvalidBackoffError",
    "InvalidBackoffParameterError",
    "BailedError",
]
