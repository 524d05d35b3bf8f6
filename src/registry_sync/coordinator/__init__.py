"""Sync Coordinator

Bounded polling loops and single-flight coordination that wait for the
ledger, the wallet and the registry metadata to agree:
- RetryExecutor for single idempotent operations
- TransactionConfirmationWatcher / WarehouseRegistrationWatcher (bounded)
- LedgerSyncWatcher (unbounded, cancellable)
- SyncGate (single-flight wrapper around LedgerSyncWatcher)
"""

from .types import (
    TransactionSource,
    StagingQueueSource,
    LedgerNode,
    HomeOrganizationSource,
    WalletService,
)
from .retry import RetryBudget, RetryExecutor, with_retries
from .watchers import (
    WatchOutcome,
    BoundedWatcher,
    TransactionConfirmationWatcher,
    WarehouseRegistrationWatcher,
    CONFIRMATION_POLL_INTERVAL_S,
    CONFIRMATION_MAX_ATTEMPTS,
)
from .ledger_sync import (
    LedgerSyncWatcher,
    SyncResult,
    EMPTY_TREE_HASH,
    SYNC_POLL_INTERVAL_S,
)
from .gate import SyncGate, GateState

__all__ = [
    # sources
    "TransactionSource",
    "StagingQueueSource",
    "LedgerNode",
    "HomeOrganizationSource",
    "WalletService",
    # retry
    "RetryBudget",
    "RetryExecutor",
    "with_retries",
    # watchers
    "WatchOutcome",
    "BoundedWatcher",
    "TransactionConfirmationWatcher",
    "WarehouseRegistrationWatcher",
    "CONFIRMATION_POLL_INTERVAL_S",
    "CONFIRMATION_MAX_ATTEMPTS",
    # ledger sync
    "LedgerSyncWatcher",
    "SyncResult",
    "EMPTY_TREE_HASH",
    "SYNC_POLL_INTERVAL_S",
    "SyncGate",
    "GateState",
]
