from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Optional

from loguru import logger

from ..errors import EmptyRegistryError, SyncCancelled
from ..metrics.registry import SYNC_JOINS_TOTAL, SYNC_RUNS_TOTAL, SYNC_WAIT_SECONDS
from .ledger_sync import LedgerSyncWatcher, SyncResult


class GateState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class SyncGate:
    """Single-flight gate around LedgerSyncWatcher.

    At most one watcher run is in flight per gate. A caller arriving while a
    run is in flight joins it: it waits for that run to finish and returns
    without starting another. Only the owner's options apply to the run, and
    only the owner sees the run's errors. A joiner's own cancel event and
    timeout still apply to its wait and raise SyncCancelled without touching
    the run.

    Ownership is released on every exit path of the run, including fatal
    errors and cancellation.

    Example:
        gate = SyncGate(LedgerSyncWatcher(registry_api, datalayer))
        await gate.await_sync(throw_on_empty_registry=True)
    """

    def __init__(self, watcher: LedgerSyncWatcher, *, bypass: bool = False):
        self.watcher = watcher
        self.bypass = bypass
        self._done: Optional[asyncio.Event] = None
        self._owner_throws_on_empty = False
        self._runs = 0
        self._joins = 0

    @property
    def state(self) -> GateState:
        return GateState.RUNNING if self._done is not None else GateState.IDLE

    @property
    def is_running(self) -> bool:
        return self._done is not None

    @property
    def runs(self) -> int:
        """Watcher runs started through this gate."""
        return self._runs

    @property
    def joins(self) -> int:
        """Callers that joined an in-flight run."""
        return self._joins

    async def await_sync(
        self,
        *,
        throw_on_empty_registry: bool = False,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> Optional[SyncResult]:
        """Block until the registry is in sync with the ledger.

        Returns the SyncResult for the caller that ran the watcher, None for
        joiners and in bypass mode.
        """
        if self.bypass:
            return None

        if self._done is not None:
            await self._join(throw_on_empty_registry, cancel, timeout)
            return None

        self._acquire(throw_on_empty_registry)
        started = time.perf_counter()
        outcome = "error"
        try:
            result = await self.watcher.run(
                throw_on_empty_registry=throw_on_empty_registry,
                cancel=cancel,
                timeout=timeout,
            )
            outcome = "synced"
            return result
        except EmptyRegistryError:
            outcome = "empty_registry"
            raise
        except SyncCancelled:
            outcome = "cancelled"
            raise
        finally:
            SYNC_RUNS_TOTAL.labels(outcome=outcome).inc()
            SYNC_WAIT_SECONDS.observe(time.perf_counter() - started)
            self.release()

    async def _join(
        self,
        throw_on_empty_registry: bool,
        cancel: Optional[asyncio.Event],
        timeout: Optional[float],
    ) -> None:
        """Wait for the in-flight run. The caller's cancel and timeout end only this wait."""
        done = self._done
        self._joins += 1
        SYNC_JOINS_TOTAL.inc()
        if throw_on_empty_registry and not self._owner_throws_on_empty:
            logger.debug(
                "Joining registry sync started without throw_on_empty_registry; "
                "empty registry will not be reported to this caller"
            )
        if cancel is not None and cancel.is_set():
            raise SyncCancelled("Registry sync wait cancelled")

        waiters = [asyncio.ensure_future(done.wait())]
        if cancel is not None:
            waiters.append(asyncio.ensure_future(cancel.wait()))
        try:
            finished, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in waiters:
                waiter.cancel()

        if done.is_set():
            return
        if not finished:
            raise SyncCancelled("Registry sync wait timed out")
        raise SyncCancelled("Registry sync wait cancelled")

    def _acquire(self, throw_on_empty_registry: bool) -> None:
        # No await between the idle check in await_sync and this assignment.
        self._done = asyncio.Event()
        self._owner_throws_on_empty = throw_on_empty_registry
        self._runs += 1

    def release(self) -> None:
        """Return the gate to IDLE and wake joiners. Safe to call when idle."""
        done, self._done = self._done, None
        self._owner_throws_on_empty = False
        if done is not None:
            done.set()
