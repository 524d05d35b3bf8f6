"""
RPC clients for the local blockchain node: the data layer (tree roots) and
the wallet (transaction confirmation).

Both authenticate with the node's private mutual-TLS certificates.
"""

from __future__ import annotations

import asyncio
import ssl
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from registry_sync.coordinator.retry import Sleep
from registry_sync.errors import SyncCancelled
from registry_sync.models import LedgerRoot

from .base import ApiClient
from .config import ChiaSettings
from .errors import UpstreamError, map_http_error

WALLET_POLL_INTERVAL_S = 5.0
DEFAULT_WALLET_ID = 1


def build_ssl_context(
    certificate_folder: str, service: str, allow_self_signed: bool = True
) -> Any:
    """
    SSL context presenting ``<folder>/<service>/private_<service>.crt``.

    Returns:
        ssl.SSLContext, or a plain bool ``verify`` flag when the certificates are missing
    """
    base = Path(certificate_folder).expanduser() / service
    crt, key = base / f"private_{service}.crt", base / f"private_{service}.key"
    if not (crt.exists() and key.exists()):
        logger.warning(f"Certificates for {service} not found under {base}")
        return not allow_self_signed

    ctx = ssl.create_default_context()
    ctx.load_cert_chain(str(crt), str(key))
    if allow_self_signed:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


class RpcClient(ApiClient):
    """Node RPC: every endpoint is a POST answering ``{"success": bool, ...}``."""

    service = "RPC"

    async def _rpc(self, endpoint: str, payload: Optional[dict] = None) -> dict:
        data = await self._json("POST", f"/{endpoint}", json_body=payload or {})
        if not isinstance(data, dict) or not data.get("success", False):
            error = data.get("error") if isinstance(data, dict) else None
            raise UpstreamError(
                f"{self.service} RPC {endpoint} failed: {error or 'unsuccessful response'}",
                service=self.service,
                details=data,
            )
        return data


class DataLayer(RpcClient):
    """Ledger node: reports the confirmed root of a data layer tree."""

    service = "DataLayer"

    @classmethod
    def from_settings(cls, chia: ChiaSettings, **kwargs) -> "DataLayer":
        verify = build_ssl_context(
            chia.CERTIFICATE_FOLDER_PATH, "data_layer", chia.ALLOW_SELF_SIGNED_CERTIFICATES
        )
        return cls(chia.DATALAYER_HOST, verify=verify, **kwargs)

    async def get_root(self, tree_id: str) -> LedgerRoot:
        data = await self._rpc("get_root", {"id": tree_id})
        try:
            return LedgerRoot.model_validate(data)
        except ValidationError as e:
            raise map_http_error(self.service, e) from e


class Wallet(RpcClient):
    service = "Wallet"

    def __init__(
        self,
        base_url: str,
        *,
        poll_interval: float = WALLET_POLL_INTERVAL_S,
        wallet_id: int = DEFAULT_WALLET_ID,
        sleep: Sleep = asyncio.sleep,
        **kwargs,
    ):
        super().__init__(base_url, **kwargs)
        self.poll_interval = poll_interval
        self.wallet_id = wallet_id
        self._sleep = sleep

    @classmethod
    def from_settings(cls, chia: ChiaSettings, **kwargs) -> "Wallet":
        verify = build_ssl_context(
            chia.CERTIFICATE_FOLDER_PATH, "wallet", chia.ALLOW_SELF_SIGNED_CERTIFICATES
        )
        return cls(chia.WALLET_HOST, verify=verify, **kwargs)

    async def has_unconfirmed_transactions(self) -> bool:
        data = await self._rpc(
            "get_transactions",
            {"wallet_id": self.wallet_id, "sort_key": "RELEVANCE", "reverse": False},
        )
        transactions = data.get("transactions") or []
        if not isinstance(transactions, list):
            raise UpstreamError(
                f"{self.service} returned an unexpected transactions payload",
                service=self.service,
                details=transactions,
            )
        return any(
            not tx.get("confirmed") for tx in transactions if isinstance(tx, dict)
        )

    async def wait_for_all_transactions_to_confirm(
        self, cancel: Optional[asyncio.Event] = None
    ) -> bool:
        """Poll until the wallet reports no unconfirmed transactions."""
        while True:
            if cancel is not None and cancel.is_set():
                raise SyncCancelled("Wallet confirmation wait cancelled")
            await self._sleep(self.poll_interval)
            if not await self.has_unconfirmed_transactions():
                return True
            logger.debug("Waiting for wallet transactions to confirm")
