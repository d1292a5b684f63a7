"""
Correlation ID tracking for exchanges with the appliance.

Every exchange (foreground command or monitor poll) runs inside its own
correlation scope so that the connect, write, read and decode log lines of one
exchange can be grouped together. IDs are UUIDv7 strings, which sort by time.
"""

from __future__ import annotations

import contextvars
from collections.abc import Generator
from contextlib import contextmanager

from uuid_extensions import uuid7

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Generate a new time-ordered correlation ID."""
    return str(uuid7())


def get_correlation_id() -> str | None:
    """Get current correlation ID from context, or None if not set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in current context (None clears it)."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Context manager for correlation ID scope.

    Generates an ID when none is given and auto_generate is set, and restores
    the previous ID on exit.

    Example:
        with correlation_context() as corr_id:
            logger.info("Requesting status")  # tagged with corr_id
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)

    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)


def ensure_correlation_id() -> str:
    """Return the current correlation ID, creating one for this context if missing."""
    current_id = get_correlation_id()
    if current_id is None:
        current_id = generate_correlation_id()
        set_correlation_id(current_id)
    return current_id
