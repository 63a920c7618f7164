"""Bounded retry with linear backoff for whole check invocations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from shopaudit.models.errors import CheckExhaustedError


T = TypeVar("T")

BASE_DELAY_MS = 1000

logger = logging.getLogger(__name__)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay_ms: int = BASE_DELAY_MS,
    label: str = "check",
) -> T:
    """Await operation() up to max_attempts times.

    Sleeps attempt * delay_ms between attempts. When every attempt raises,
    the last error is re-raised as CheckExhaustedError.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.warning("%s failed (attempt %d/%d): %s", label, attempt, max_attempts, e)
            if attempt < max_attempts:
                await asyncio.sleep(delay_ms / 1000 * attempt)

    raise CheckExhaustedError(
        f"{label} failed after {max_attempts} attempts: {last_error}",
        attempts=max_attempts,
    ) from last_error
