"""
Demo script for SyncGate.

Simulates a registry whose org tree lags the ledger for a few polls and shows
several concurrent callers sharing a single sync run.
"""

import asyncio
from loguru import logger

from registry_sync.coordinator import LedgerSyncWatcher, SyncGate
from registry_sync.models import HomeOrganization, LedgerRoot


class DemoRegistry:
    async def get_home_org(self):
        return HomeOrganization(
            orgUid="demo-org",
            registryId="demo-registry",
            registryHash="0xaaa",
            orgHash="0xbbb",
            name="Demo Org",
            isHome=True,
        )


class LaggingLedger:
    """Org tree reports a stale hash for the first few polls."""

    def __init__(self, lag: int):
        self.lag = lag

    async def get_root(self, tree_id: str) -> LedgerRoot:
        if tree_id == "demo-registry":
            return LedgerRoot(hash="0xaaa", confirmed=True)
        if self.lag > 0:
            self.lag -= 1
            return LedgerRoot(hash="0xstale", confirmed=True)
        return LedgerRoot(hash="0xbbb", confirmed=True)


async def caller(gate: SyncGate, n: int):
    result = await gate.await_sync()
    if result is None:
        logger.info(f"caller {n}: joined an in-flight sync")
    else:
        logger.info(f"caller {n}: ran the sync ({result.iterations} iterations)")


async def main():
    watcher = LedgerSyncWatcher(DemoRegistry(), LaggingLedger(lag=3), poll_interval=0.2)
    gate = SyncGate(watcher)

    logger.info("🚀 Starting 5 concurrent callers")
    await asyncio.gather(*(caller(gate, n) for n in range(5)))

    logger.info(f"✅ Demo complete: runs={gate.runs} joins={gate.joins}")


if __name__ == "__main__":
    asyncio.run(main())
