from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger

from ..errors import FatalSyncError
from ..metrics.registry import RETRY_ATTEMPTS_TOTAL

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryBudget:
    """Fixed-interval retry budget.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        interval_ms: Pause between consecutive attempts
    """

    max_attempts: int = 3
    interval_ms: int = 5000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.interval_ms < 0:
            raise ValueError("interval_ms must be >= 0")

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0


class RetryExecutor(Generic[T]):
    """Runs a single idempotent operation under a RetryBudget.

    Attempts are strictly sequential. After the final failed attempt the
    last exception is re-raised unchanged, with no trailing sleep.
    FatalSyncError is never retried.

    Example:
        executor = RetryExecutor(RetryBudget(max_attempts=3, interval_ms=5000))
        body = await executor.run(lambda: client.put(url, json=payload))
    """

    def __init__(
        self,
        budget: Optional[RetryBudget] = None,
        *,
        sleep: Sleep = asyncio.sleep,
        name: str = "operation",
    ):
        self.budget = budget or RetryBudget()
        self._sleep = sleep
        self._name = name

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await operation()
            except FatalSyncError:
                RETRY_ATTEMPTS_TOTAL.labels(outcome="fatal").inc()
                raise
            except Exception as exc:
                RETRY_ATTEMPTS_TOTAL.labels(outcome="failure").inc()
                if attempt >= self.budget.max_attempts:
                    logger.debug(
                        f"{self._name} failed after {attempt} attempt(s): "
                        f"{type(exc).__name__}: {exc}"
                    )
                    raise
                logger.debug(
                    f"{self._name} attempt {attempt}/{self.budget.max_attempts} failed "
                    f"({type(exc).__name__}: {exc}); retrying in {self.budget.interval_ms}ms"
                )
                await self._sleep(self.budget.interval_s)
                continue

            RETRY_ATTEMPTS_TOTAL.labels(outcome="success").inc()
            return result


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    interval_ms: int = 5000,
) -> T:
    """Shorthand for ``RetryExecutor(RetryBudget(...)).run(operation)``."""
    return await RetryExecutor(RetryBudget(max_attempts, interval_ms)).run(operation)
