"""Options accepted by the retry orchestrator."""

import logging
import os
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 10


def default_retries() -> int:
    """Default retry budget, overridable with RECALLER_DEFAULT_RETRIES."""
    raw = os.getenv("RECALLER_DEFAULT_RETRIES")
    if raw is None:
        return DEFAULT_RETRIES

    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            f"Ignoring invalid RECALLER_DEFAULT_RETRIES={raw!r}, using {DEFAULT_RETRIES}"
        )
        return DEFAULT_RETRIES

    if value < 0:
        logger.warning(
            f"Ignoring negative RECALLER_DEFAULT_RETRIES={raw!r}, using {DEFAULT_RETRIES}"
        )
        return DEFAULT_RETRIES
    return value


class RetryOptions(BaseModel):
    """Configuration for one retry sequence.

    Attributes:
        retries: Additional attempts allowed after the first one. ``retries=1``
            means the operation runs at most twice.
        backoff: Callable mapping the failed attempt number to a delay in
            milliseconds. ``None`` means no delay between attempts.
        onretry: Callable invoked as ``onretry(error, attempt, delay_ms)``
            before each retry. Raising from it stops the sequence with that
            error.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    retries: StrictInt = Field(
        default_factory=default_retries,
        ge=0,
        description="Additional attempts after the first",
    )
    # Callability of these two is checked by the orchestrator so that it can
    # raise its own TypeError subclasses.
    backoff: Optional[Any] = Field(
        default=None, description="attempt -> delay in milliseconds"
    )
    onretry: Optional[Any] = Field(
        default=None, description="(error, attempt, delay_ms) observer"
    )

    @field_validator("retries", mode="before")
    @classmethod
    def default_when_unset(cls, v: Any) -> Any:
        """An explicit None selects the default budget"""
        if v is None:
            return default_retries()
        return v

    @classmethod
    def from_value(
        cls,
        options: Union["RetryOptions", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "RetryOptions":
        """Coerce ``None``, a mapping or an instance into ``RetryOptions``."""
        if options is None:
            return cls(**overrides)
        if isinstance(options, RetryOptions):
            if not overrides:
                return options
            # Values are copied as-is so backoff instances keep their identity
            current = {
                name: getattr(options, name) for name in options.model_fields_set
            }
            return cls(**{**current, **overrides})
        if isinstance(options, Mapping):
            return cls(**{**options, **overrides})
        raise TypeError(
            f"options must be RetryOptions, a mapping or None, got {type(options).__name__}"
        )
