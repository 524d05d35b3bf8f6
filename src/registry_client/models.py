"""
Pydantic payload models for the registry REST resources.

Field names follow the registry wire format (camelCase).
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

PERMISSIONLESS_RETIREMENT = "PERMISSIONLESS_RETIREMENT"


class RetirementActivity(BaseModel):
    """One activity returned by the retirement explorer."""

    model_config = ConfigDict(extra="allow")

    mode: str
    height: Optional[int] = None
    amount: Optional[float] = None
    beneficiary_name: Optional[str] = None
    beneficiary_address: Optional[str] = None
    token: Optional[dict] = None
    cw_unit: Optional[dict] = None


class SplitRecord(BaseModel):
    """One side of a unit split."""

    model_config = ConfigDict(populate_by_name=True)

    unitCount: int
    marketplace: Optional[str] = None
    marketplaceIdentifier: Optional[str] = None
    unitStatus: Optional[str] = None
    unitOwner: Optional[str] = None
    unitStatusReason: Optional[str] = None

    @field_validator("unitCount")
    @classmethod
    def _positive_count(cls, v):
        if v <= 0:
            raise ValueError("unitCount must be positive")
        return v


class SplitUnitRequest(BaseModel):
    warehouseUnitId: str
    records: List[SplitRecord]

    @field_validator("records")
    @classmethod
    def _two_records(cls, v):
        if len(v) != 2:
            raise ValueError("A split produces exactly two records")
        return v


class LastProcessedHeightUpdate(BaseModel):
    lastRetiredBlockHeight: str

    @field_validator("lastRetiredBlockHeight", mode="before")
    @classmethod
    def _stringify(cls, v: Any):
        height = int(v)
        if height < 0:
            raise ValueError("Block height must be >= 0")
        return str(height)
