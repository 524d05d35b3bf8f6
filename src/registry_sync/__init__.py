"""
Registry Sync

Client-side coordination that waits until a distributed ledger, a wallet and
an off-chain registry agree before a write flow proceeds.

Usage:
    from registry_sync import LedgerSyncWatcher, SyncGate

    gate = SyncGate(LedgerSyncWatcher(registry, datalayer))
    await gate.await_sync(throw_on_empty_registry=True)
"""

from .errors import (
    SyncError,
    FatalSyncError,
    EmptyRegistryError,
    SyncCancelled,
    SourceUnavailable,
)
from .models import HomeOrganization, LedgerRoot, ConfirmationStatus, SyncAttemptState
from .coordinator import (
    RetryBudget,
    RetryExecutor,
    TransactionConfirmationWatcher,
    WarehouseRegistrationWatcher,
    LedgerSyncWatcher,
    SyncGate,
    GateState,
    SyncResult,
    EMPTY_TREE_HASH,
)

__version__ = "1.0.0"
__all__ = [
    "SyncError",
    "FatalSyncError",
    "EmptyRegistryError",
    "SyncCancelled",
    "SourceUnavailable",
    "HomeOrganization",
    "LedgerRoot",
    "ConfirmationStatus",
    "SyncAttemptState",
    "RetryBudget",
    "RetryExecutor",
    "TransactionConfirmationWatcher",
    "WarehouseRegistrationWatcher",
    "LedgerSyncWatcher",
    "SyncGate",
    "GateState",
    "SyncResult",
    "EMPTY_TREE_HASH",
]
