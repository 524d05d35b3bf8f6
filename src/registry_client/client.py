from __future__ import annotations

import asyncio
from typing import Optional

from registry_sync.coordinator.retry import Sleep

from .chia import DataLayer, Wallet
from .config import Settings, get_settings
from .registry import RegistryApi
from .retirement_explorer import RetirementExplorerApi
from .token_driver import TokenDriverApi


class CoreRegistryClient:
    """All service clients built from one Settings object.

    Test mode (``MODE=test``) is read here, once, and handed to the registry
    client as ``bypass_sync``; nothing below this point looks at the
    environment.

    Example:
        async with CoreRegistryClient() as core:
            await core.registry.set_last_processed_height(1234)
    """

    def __init__(self, settings: Optional[Settings] = None, *, sleep: Sleep = asyncio.sleep):
        self.settings = settings or get_settings()
        s = self.settings
        timeout = s.REQUEST_TIMEOUT_S

        self.datalayer = DataLayer.from_settings(s.CHIA, timeout=timeout)
        self.wallet = Wallet.from_settings(s.CHIA, timeout=timeout, sleep=sleep)
        self.registry = RegistryApi(
            s.CADT.uri,
            api_key=s.CADT.API_KEY,
            timeout=timeout,
            wallet=self.wallet,
            datalayer=self.datalayer,
            bypass_sync=s.is_test_mode,
            sync_poll_interval=s.SYNC_POLL_INTERVAL_S,
            confirmation_poll_interval=s.CONFIRMATION_POLL_INTERVAL_S,
            confirmation_max_attempts=s.CONFIRMATION_MAX_ATTEMPTS,
            retry_unavailable=s.RETRY_UNAVAILABLE_SOURCES,
            sleep=sleep,
        )
        self.token_driver = TokenDriverApi(
            s.CHIA_CLIMATE_TOKENIZATION.uri,
            api_key=s.CHIA_CLIMATE_TOKENIZATION.API_KEY,
            timeout=timeout,
            confirmation_poll_interval=s.CONFIRMATION_POLL_INTERVAL_S,
            confirmation_max_attempts=s.CONFIRMATION_MAX_ATTEMPTS,
            retry_unavailable=s.RETRY_UNAVAILABLE_SOURCES,
            sleep=sleep,
        )
        self.retirement_explorer = RetirementExplorerApi(
            s.RETIREMENT_EXPLORER.uri,
            api_key=s.RETIREMENT_EXPLORER.API_KEY,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        for api in (
            self.registry,
            self.token_driver,
            self.retirement_explorer,
            self.datalayer,
            self.wallet,
        ):
            await api.aclose()

    async def __aenter__(self) -> "CoreRegistryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
