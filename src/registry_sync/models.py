"""
Pydantic data models sampled by the sync watchers.

Snapshots are fetched fresh on every poll and never mutated locally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HomeOrganization(BaseModel):
    """The operator's own registry entry and its recorded tree hashes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    org_uid: str = Field(alias="orgUid")
    registry_id: str = Field(alias="registryId")
    registry_hash: Optional[str] = Field(default=None, alias="registryHash")
    org_hash: Optional[str] = Field(default=None, alias="orgHash")
    name: Optional[str] = None
    is_home: bool = Field(default=True, alias="isHome")


class LedgerRoot(BaseModel):
    """On-chain root of one tree as reported by the ledger node."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    hash: Optional[str] = None
    confirmed: bool = False


class ConfirmationStatus(BaseModel):
    """Confirmation flag returned by transaction and staging-queue sources."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    confirmed: bool = False


@dataclass
class SyncAttemptState:
    """Ephemeral state of one LedgerSyncWatcher run."""

    attempt: int = 0
    is_first_sync_after_failure: bool = False
