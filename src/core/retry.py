"""Bounded retry helper with an explicit delay schedule."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from src.core.structured_logging import log_json

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait between tries.

    ``delays[i]`` is the wait (seconds) after failed attempt ``i + 1``; the
    last delay is reused when there are more attempts than delays.
    """

    max_attempts: int = 3
    delays: Sequence[float] = (1.0, 2.0, 4.0)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if any(d < 0 for d in self.delays):
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        if not self.delays:
            return 0.0
        index = min(max(attempt, 1), len(self.delays)) - 1
        return float(self.delays[index])

    def can_retry(self, attempt: int) -> bool:
        return attempt < self.max_attempts


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or the policy is exhausted.

    Exceptions not listed in ``retry_on`` propagate immediately. The last
    error is re-raised once ``max_attempts`` is reached.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except retry_on as exc:
            if not policy.can_retry(attempt):
                log_json(
                    logger,
                    logging.ERROR,
                    "retry_exhausted",
                    operation=name,
                    attempts=attempt,
                    error=str(exc),
                    exception=exc.__class__.__name__,
                )
                raise
            delay = policy.delay_for(attempt)
            log_json(
                logger,
                logging.WARNING,
                "retry_scheduled",
                operation=name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_seconds=delay,
                error=str(exc),
            )
            await sleep(delay)
