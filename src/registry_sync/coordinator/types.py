from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models import ConfirmationStatus, HomeOrganization, LedgerRoot


@runtime_checkable
class TransactionSource(Protocol):
    """Reports whether a specific transaction has been confirmed."""

    async def confirm_transaction(self, transaction_id: str) -> ConfirmationStatus: ...


@runtime_checkable
class StagingQueueSource(Protocol):
    """Reports whether the staging queue has drained (``confirmed=True``)."""

    async def has_pending_transactions(self) -> ConfirmationStatus: ...


@runtime_checkable
class LedgerNode(Protocol):
    """Samples the on-chain root of a tree."""

    async def get_root(self, tree_id: str) -> LedgerRoot: ...


@runtime_checkable
class HomeOrganizationSource(Protocol):
    """Returns the operator's home organization, or None if it does not exist yet."""

    async def get_home_org(self) -> Optional[HomeOrganization]: ...


@runtime_checkable
class WalletService(Protocol):
    """Resolves once the wallet has no unconfirmed transactions."""

    async def wait_for_all_transactions_to_confirm(self) -> bool: ...
