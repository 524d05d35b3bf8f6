from __future__ import annotations

import asyncio
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from registry_sync.coordinator import (
    CONFIRMATION_MAX_ATTEMPTS,
    CONFIRMATION_POLL_INTERVAL_S,
    SYNC_POLL_INTERVAL_S,
    LedgerNode,
    LedgerSyncWatcher,
    SyncGate,
    SyncResult,
    WalletService,
    WarehouseRegistrationWatcher,
)
from registry_sync.coordinator.retry import Sleep
from registry_sync.models import ConfirmationStatus, HomeOrganization

from .base import ApiClient
from .errors import UpstreamError, map_http_error
from .models import LastProcessedHeightUpdate, SplitRecord, SplitUnitRequest
from .utils import parse_serial_number

# Seconds to let a write settle before asking the wallet about it
WRITE_SETTLE_S = 5.0

HOME_ORG_UPDATING_MESSAGE = "Home org currently being updated, will be completed soon."
PENDING_ORG_UID = "PENDING"

# Keys the registry refuses on PUT /v1/units
_READ_ONLY_UNIT_KEYS = ("issuanceId", "orgUid", "serialNumberBlock", "timeStaged")


class RegistryApi(ApiClient):
    """Client for the off-chain registry service.

    Owns the SyncGate used by every write that has to wait for the registry
    to catch up with the ledger, and the watcher that confirms staged data
    reached the warehouse.
    """

    service = "Registry"

    def __init__(
        self,
        base_url: str,
        *,
        wallet: WalletService,
        datalayer: LedgerNode,
        bypass_sync: bool = False,
        sync_poll_interval: float = SYNC_POLL_INTERVAL_S,
        confirmation_poll_interval: float = CONFIRMATION_POLL_INTERVAL_S,
        confirmation_max_attempts: int = CONFIRMATION_MAX_ATTEMPTS,
        retry_unavailable: bool = False,
        settle_interval: float = WRITE_SETTLE_S,
        sleep: Sleep = asyncio.sleep,
        **kwargs,
    ):
        super().__init__(base_url, **kwargs)
        self.wallet = wallet
        self.settle_interval = settle_interval
        self._sleep = sleep
        self.sync_gate = SyncGate(
            LedgerSyncWatcher(self, datalayer, poll_interval=sync_poll_interval, sleep=sleep),
            bypass=bypass_sync,
        )
        self.warehouse_watcher = WarehouseRegistrationWatcher(
            self,
            poll_interval=confirmation_poll_interval,
            max_attempts=confirmation_max_attempts,
            retry_unavailable=retry_unavailable,
            bypass=bypass_sync,
            sleep=sleep,
        )

    # ---------- sync ----------

    async def wait_for_registry_data_sync(
        self,
        *,
        throw_on_empty_registry: bool = False,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> Optional[SyncResult]:
        """Wait until the registry's recorded hashes match the confirmed on-chain roots."""
        return await self.sync_gate.await_sync(
            throw_on_empty_registry=throw_on_empty_registry, cancel=cancel, timeout=timeout
        )

    async def _wait_for_write_to_settle(self) -> None:
        await self.wallet.wait_for_all_transactions_to_confirm()
        await self._sleep(self.settle_interval)
        await self.wait_for_registry_data_sync()

    async def has_pending_transactions(self) -> ConfirmationStatus:
        body = await self._json("GET", "/v1/staging/hasPendingTransactions")
        try:
            return ConfirmationStatus.model_validate(body)
        except ValidationError as e:
            raise map_http_error(self.service, e) from e

    async def confirm_token_registration_on_warehouse(self) -> bool:
        """True once the staging queue has drained, False when the watcher gives up."""
        return await self.warehouse_watcher.wait_for_registration()

    # ---------- staging ----------

    async def commit_staging_data(self) -> Any:
        try:
            response = await self._request("POST", "/v1/staging/commit")
            await self._sleep(self.settle_interval)
            await self._wait_for_write_to_settle()
            return self._body(response)
        except UpstreamError as e:
            self._log_failure("Could not commit staging data", e)
            return None

    async def delete_staging_data(self) -> Any:
        response = await self._request("DELETE", "/v1/staging/clean")
        return self._body(response)

    # ---------- units ----------

    @staticmethod
    def sanitize_unit_for_update(unit: dict) -> dict:
        """Copy of ``unit`` without read-only keys and null values."""
        cleaned = dict(unit)
        if isinstance(cleaned.get("issuance"), dict):
            cleaned["issuance"] = {
                k: v for k, v in cleaned["issuance"].items() if k != "orgUid"
            }
        for key in _READ_ONLY_UNIT_KEYS:
            cleaned.pop(key, None)
        return {k: v for k, v in cleaned.items() if v is not None}

    async def update_unit(self, unit: dict) -> Any:
        try:
            response = await self._request(
                "PUT", "/v1/units", json_body=self.sanitize_unit_for_update(unit)
            )
            return self._body(response)
        except UpstreamError as e:
            self._log_failure("Could not update unit", e)
            return None

    async def retire_unit(
        self,
        unit: dict,
        beneficiary_name: Optional[str] = None,
        beneficiary_address: Optional[str] = None,
    ) -> Any:
        cleaned = self.sanitize_unit_for_update(unit)
        if beneficiary_name:
            cleaned["unitOwner"] = beneficiary_name
        if beneficiary_address:
            cleaned["unitStatusReason"] = beneficiary_address
        cleaned["unitStatus"] = "Retired"

        logger.info(f"Retiring whole unit {unit.get('warehouseUnitId')}")
        return await self.update_unit(cleaned)

    async def split_unit(
        self,
        unit: dict,
        amount: int,
        beneficiary_name: Optional[str] = None,
        beneficiary_address: Optional[str] = None,
    ) -> Any:
        """Split ``amount`` retired units off a block; the remainder stays active."""
        logger.info(f"Splitting unit {unit.get('warehouseUnitId')} by {amount}")

        block_start, block_end = parse_serial_number(unit.get("serialNumberBlock"))
        if block_start is None or block_end is None:
            logger.error("serialNumberBlock is not in the correct format")
            return None

        total_units = int(block_end) - int(block_start) + 1
        if amount >= total_units:
            raise ValueError("Amount must be less than total units in the block")

        payload = SplitUnitRequest(
            warehouseUnitId=unit["warehouseUnitId"],
            records=[
                SplitRecord(
                    unitCount=amount,
                    marketplace=unit.get("marketplace"),
                    marketplaceIdentifier=unit.get("marketplaceIdentifier"),
                    unitStatus="Retired",
                    unitOwner=beneficiary_name,
                    unitStatusReason=beneficiary_address,
                ),
                SplitRecord(
                    unitCount=total_units - amount,
                    marketplace=unit.get("marketplace"),
                    marketplaceIdentifier=unit.get("marketplaceIdentifier"),
                ),
            ],
        )

        try:
            response = await self._request(
                "POST", "/v1/units/split", json_body=payload.model_dump(exclude_none=True)
            )
            return self._body(response)
        except UpstreamError as e:
            self._log_failure("Could not split unit on registry", e)
            return None

    async def get_asset_unit_blocks(self, marketplace_identifier: str) -> Any:
        try:
            return await self._json(
                "GET",
                "/v1/units",
                params={"filter": f"marketplaceIdentifier:{marketplace_identifier}:eq"},
            )
        except UpstreamError as e:
            self._log_failure("Could not get asset unit blocks from registry", e)
            return None

    async def get_tokenized_unit_by_asset_id(self, asset_id: str) -> Any:
        try:
            return await self._json("GET", "/v1/units", params={"marketplaceIdentifiers": asset_id})
        except UpstreamError as e:
            self._log_failure("Could not get tokenized unit by asset id", e)
            raise

    async def get_project_by_warehouse_project_id(self, warehouse_project_id: str) -> Any:
        try:
            projects = await self._json(
                "GET", "/v1/projects", params={"projectIds": warehouse_project_id}
            )
        except UpstreamError as e:
            self._log_failure("Could not get corresponding project data", e)
            raise
        return projects[0] if projects else None

    # ---------- organizations ----------

    async def get_home_org(self) -> Optional[HomeOrganization]:
        """The home organization, or None while it is missing or still PENDING."""
        try:
            body = await self._json("GET", "/v1/organizations")
            if not isinstance(body, (dict, list)):
                raise UpstreamError(
                    "Registry returned an unexpected organizations payload",
                    service=self.service,
                    details=body,
                )
            orgs = body.values() if isinstance(body, dict) else body
            home = next((org for org in orgs if isinstance(org, dict) and org.get("isHome")), None)
            if home is None or home.get("orgUid") == PENDING_ORG_UID:
                return None
            try:
                return HomeOrganization.model_validate(home)
            except ValidationError as e:
                raise map_http_error(self.service, e) from e
        except UpstreamError as e:
            self._log_failure("Could not get home org", e)
            return None

    async def get_home_org_uid(self) -> Optional[str]:
        home_org = await self.get_home_org()
        return home_org.org_uid if home_org else None

    async def get_org_metadata(self, org_uid: str) -> Any:
        try:
            return await self._json(
                "GET", "/v1/organizations/metadata", params={"orgUid": org_uid}
            )
        except UpstreamError as e:
            self._log_failure("Could not get org metadata", e)
            raise

    async def get_last_processed_height(self) -> Optional[int]:
        try:
            home_org_uid = await self.get_home_org_uid()
            if home_org_uid is None:
                logger.error("Could not get last processed height: no home organization")
                return None
            metadata = await self._json(
                "GET", "/v1/organizations/metadata", params={"orgUid": home_org_uid}
            )
            try:
                return int(metadata.get("lastRetiredBlockHeight") or 0)
            except (AttributeError, TypeError, ValueError) as e:
                raise map_http_error(self.service, e) from e
        except UpstreamError as e:
            self._log_failure("Could not get last processed height", e)
            return None

    async def set_last_processed_height(self, height: int) -> Any:
        """Record ``height`` in the home org metadata, waiting for sync before and after."""
        try:
            await self._wait_for_write_to_settle()

            payload = LastProcessedHeightUpdate(lastRetiredBlockHeight=height)
            response = await self._request(
                "POST", "/v1/organizations/metadata", json_body=payload.model_dump()
            )
            data = self._body(response)
            if not isinstance(data, dict) or data.get("message") != HOME_ORG_UPDATING_MESSAGE:
                logger.critical("CRITICAL ERROR: Could not set last processed height in registry.")
                return None

            await self._wait_for_write_to_settle()
            return data
        except UpstreamError as e:
            self._log_failure("Could not set last processed height", e)
            return None
