"""
LedgerSyncWatcher: waits until the registry's recorded tree hashes match the
confirmed on-chain roots of both the registry tree and the organization tree.

Each iteration runs, in order:
    1. fetch home organization (absent -> keep polling)
    2. registry tree root must be confirmed
    3. confirmed empty registry root + throw_on_empty_registry -> EmptyRegistryError
    4. registry root hash must equal the recorded registry hash
    5. organization tree root must be confirmed
    6. organization root hash must equal the recorded organization hash
    7. converged

There is no attempt ceiling. A run ends on convergence, on a fatal error, or
when the optional cancel event / timeout fires.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..errors import EmptyRegistryError, SyncCancelled
from ..metrics.registry import SYNC_ITERATIONS_TOTAL
from ..models import SyncAttemptState
from .retry import Sleep
from .types import HomeOrganizationSource, LedgerNode

SYNC_POLL_INTERVAL_S = 5.0

# Root hash of a data layer tree with no content
EMPTY_TREE_HASH = "0x" + "0" * 64

MISSING_HOME_ORG_MESSAGE = (
    "Cannot find the home org from the Registry. Please verify your Registry is "
    "running and you have created a Home Organization."
)
SYNCED_MESSAGE = "Registry is SYNCED! Proceeding with the task."


@dataclass(frozen=True)
class SyncResult:
    """Summary of a completed LedgerSyncWatcher run."""

    iterations: int
    recovered: bool


class LedgerSyncWatcher:
    def __init__(
        self,
        registry: HomeOrganizationSource,
        ledger: LedgerNode,
        *,
        poll_interval: float = SYNC_POLL_INTERVAL_S,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.ledger = ledger
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def _check_cancel(
        self, cancel: Optional[asyncio.Event], deadline: Optional[float]
    ) -> None:
        if cancel is not None and cancel.is_set():
            raise SyncCancelled("Registry sync wait cancelled")
        if deadline is not None and self._clock() >= deadline:
            raise SyncCancelled("Registry sync wait timed out")

    async def run(
        self,
        *,
        throw_on_empty_registry: bool = False,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> SyncResult:
        state = SyncAttemptState()
        deadline = self._clock() + timeout if timeout is not None else None

        while True:
            self._check_cancel(cancel, deadline)
            await self._sleep(self.poll_interval)
            self._check_cancel(cancel, deadline)

            state.attempt += 1
            if not await self._iteration(throw_on_empty_registry):
                state.is_first_sync_after_failure = True
                SYNC_ITERATIONS_TOTAL.labels(result="pending").inc()
                continue

            SYNC_ITERATIONS_TOTAL.labels(result="synced").inc()
            if state.is_first_sync_after_failure:
                logger.info(SYNCED_MESSAGE)
            return SyncResult(
                iterations=state.attempt, recovered=state.is_first_sync_after_failure
            )

    async def _iteration(self, throw_on_empty_registry: bool) -> bool:
        """One pass over steps 1-6. Returns True when everything converged."""
        home_org = await self.registry.get_home_org()
        if home_org is None:
            logger.warning(MISSING_HOME_ORG_MESSAGE)
            return False

        registry_root = await self.ledger.get_root(home_org.registry_id)
        if not registry_root.confirmed:
            logger.debug("Waiting for Registry root to confirm")
            return False

        if registry_root.hash == EMPTY_TREE_HASH and throw_on_empty_registry:
            raise EmptyRegistryError(
                "Registry is empty. Please add some data to run auto retirement task."
            )

        if registry_root.hash != home_org.registry_hash:
            logger.debug(
                "Waiting for Registry to sync with latest registry root. "
                + json.dumps(
                    {
                        "onChainRoot": registry_root.hash,
                        "homeOrgRegistryRoot": home_org.registry_hash,
                    }
                )
            )
            return False

        org_root = await self.ledger.get_root(home_org.org_uid)
        if not org_root.confirmed:
            logger.debug("Waiting for Organization root to confirm")
            return False

        if org_root.hash != home_org.org_hash:
            logger.debug(
                "Waiting for Registry to sync with latest organization root. "
                + json.dumps({"onChainRoot": org_root.hash, "homeOrgRoot": home_org.org_hash})
            )
            return False

        return True
