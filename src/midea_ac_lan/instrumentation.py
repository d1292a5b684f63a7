"""
Performance instrumentation for network operations.

Provides a decorator that times coroutines and warns when an operation takes
longer than the configured threshold. Can be disabled via MIDEA_PERF_TRACKING.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

__all__ = [
    "measure_time",
    "timed_async",
]

P = ParamSpec("P")
T = TypeVar("T")


def measure_time(start_time: float) -> float:
    """Elapsed milliseconds since ``start_time`` (a time.perf_counter() value)."""
    return (time.perf_counter() - start_time) * 1000


def timed_async(operation_name: str | None = None) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for timing async functions with threshold warnings.

    Example:
        @timed_async("socket_connect")
        async def connect(self):
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from midea_ac_lan.const import (
                MIDEA_PERF_THRESHOLD_MS,
                MIDEA_PERF_TRACKING,
            )
            from midea_ac_lan.logging_abstraction import get_logger

            if not MIDEA_PERF_TRACKING:
                return await func(*args, **kwargs)

            logger = get_logger(__name__)
            op_name = operation_name or func.__name__

            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = measure_time(start_time)
                if elapsed_ms > MIDEA_PERF_THRESHOLD_MS:
                    logger.warning(
                        "[%s] completed in %.1fms (threshold: %dms)",
                        op_name,
                        elapsed_ms,
                        MIDEA_PERF_THRESHOLD_MS,
                        extra={"operation": op_name, "elapsed_ms": round(elapsed_ms, 2)},
                    )
                else:
                    logger.debug(
                        "[%s] completed in %.1fms",
                        op_name,
                        elapsed_ms,
                    )

        return wrapper

    return decorator
