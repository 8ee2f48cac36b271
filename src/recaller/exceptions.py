"""Errors raised by the retry orchestrator and the backoff generators."""


class RecallerError(Exception):
    """Base class for errors raised by recaller itself."""


class InvalidOperationError(RecallerError, TypeError):
    def __init__(self, operation: object):
        super().__init__(
            f"operation is not callable: {type(operation).__name__}"
        )


class InvalidObserverError(RecallerError, TypeError):
    def __init__(self, observer: object):
        super().__init__(
            f"onretry handler is not callable: {type(observer).__name__}"
        )


class InvalidBackoffError(RecallerError, TypeError):
    def __init__(self, backoff: object):
        super().__init__(f"backoff is not callable: {type(backoff).__name__}")


class InvalidBackoffParameterError(RecallerError, ValueError):
    """Raised when a backoff generator is built with an out-of-range parameter."""

    def __init__(self, name: str, value: object, constraint: str):
        super().__init__(f"Invalid backoff parameter {name}={value!r}: {constraint}")


class BailedError(RecallerError):
    """Raised when an operation bails without an exception of its own.

    A bare ``bail()`` produces this error with :attr:`DEFAULT_MESSAGE`; a
    non-exception reason such as a string is carried as the message.
    """

    DEFAULT_MESSAGE = "Bailed without giving a reason."

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message)
