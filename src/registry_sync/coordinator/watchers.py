"""
Bounded confirmation watchers.

Each watcher sleeps, samples a source, and stops on confirmation or after
``max_attempts`` polls. Exhausting the budget returns ``False``; the caller
decides how severe that is.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum

from loguru import logger

from ..errors import SourceUnavailable
from ..metrics.registry import WATCHER_POLLS_TOTAL
from .retry import Sleep
from .types import StagingQueueSource, TransactionSource

CONFIRMATION_POLL_INTERVAL_S = 30.0
CONFIRMATION_MAX_ATTEMPTS = 60  # ~30 minutes at the default interval


class WatchOutcome(str, Enum):
    """Terminal states of a bounded watcher."""

    POLLING = "polling"
    CONFIRMED = "confirmed"
    GAVE_UP = "gave_up"


class BoundedWatcher:
    """Polling loop shared by the confirmation watchers.

    Args:
        poll_interval: Seconds slept before every poll
        max_attempts: Poll ceiling
        retry_unavailable: Keep polling when a poll raises SourceUnavailable
            (the failed poll still consumes one attempt). When False a
            transport failure ends the watch with ``False``.
        bypass: Report success immediately without polling (test mode)
        sleep: Awaitable sleep, injectable for tests
    """

    name = "bounded"

    def __init__(
        self,
        *,
        poll_interval: float = CONFIRMATION_POLL_INTERVAL_S,
        max_attempts: int = CONFIRMATION_MAX_ATTEMPTS,
        retry_unavailable: bool = False,
        bypass: bool = False,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.retry_unavailable = retry_unavailable
        self.bypass = bypass
        self._sleep = sleep

    async def _poll_once(self, *args) -> bool:
        raise NotImplementedError

    def _describe(self, *args) -> str:
        return self.name

    async def _watch(self, *args) -> bool:
        if self.bypass:
            logger.debug(f"{self._describe(*args)}: bypassed")
            return True

        outcome = WatchOutcome.POLLING
        for attempt in range(1, self.max_attempts + 1):
            await self._sleep(self.poll_interval)
            try:
                confirmed = await self._poll_once(*args)
            except SourceUnavailable as exc:
                WATCHER_POLLS_TOTAL.labels(watcher=self.name, outcome="unavailable").inc()
                logger.error(f"Error while {self._describe(*args)}: {exc}")
                if exc.details is not None:
                    logger.error(
                        f"Additional error details: {json.dumps(exc.details, default=str)}"
                    )
                if self.retry_unavailable:
                    continue
                outcome = WatchOutcome.GAVE_UP
                break

            if confirmed:
                WATCHER_POLLS_TOTAL.labels(watcher=self.name, outcome="confirmed").inc()
                logger.debug(f"{self._describe(*args)}: confirmed after {attempt} poll(s)")
                outcome = WatchOutcome.CONFIRMED
                break

            WATCHER_POLLS_TOTAL.labels(watcher=self.name, outcome="pending").inc()
        else:
            outcome = WatchOutcome.GAVE_UP
            logger.warning(
                f"{self._describe(*args)}: not confirmed after {self.max_attempts} polls"
            )

        return outcome is WatchOutcome.CONFIRMED


class TransactionConfirmationWatcher(BoundedWatcher):
    """Polls a transaction source until the given transaction is confirmed."""

    name = "transaction"

    def __init__(self, source: TransactionSource, **kwargs):
        super().__init__(**kwargs)
        self.source = source

    def _describe(self, transaction_id: str) -> str:
        return f"confirming transaction {transaction_id}"

    async def _poll_once(self, transaction_id: str) -> bool:
        status = await self.source.confirm_transaction(transaction_id)
        return bool(status.confirmed)

    async def wait_for_confirmation(self, transaction_id: str) -> bool:
        return await self._watch(transaction_id)


class WarehouseRegistrationWatcher(BoundedWatcher):
    """Polls the staging queue until no pending transactions remain."""

    name = "warehouse"

    def __init__(self, source: StagingQueueSource, **kwargs):
        super().__init__(**kwargs)
        self.source = source

    def _describe(self) -> str:
        return "confirming token registration on warehouse"

    async def _poll_once(self) -> bool:
        status = await self.source.has_pending_transactions()
        return bool(status.confirmed)

    async def wait_for_registration(self) -> bool:
        return await self._watch()
