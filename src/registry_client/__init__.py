"""
Registry Client Library

Async HTTP clients for the registry, token driver, retirement explorer and
the local node (data layer + wallet), wired to the registry_sync
coordination layer.

Usage:
    from registry_client import CoreRegistryClient

    async with CoreRegistryClient() as core:
        await core.registry.commit_staging_data()
        await core.registry.wait_for_registry_data_sync(throw_on_empty_registry=True)
"""

from .client import CoreRegistryClient
from .config import Settings, get_settings
from .registry import RegistryApi
from .token_driver import TokenDriverApi
from .retirement_explorer import RetirementExplorerApi
from .chia import DataLayer, Wallet
from .errors import RegistryClientError, ApiKeyInvalid, UpstreamError

__version__ = "1.0.0"
__all__ = [
    "CoreRegistryClient",
    "Settings",
    "get_settings",
    "RegistryApi",
    "TokenDriverApi",
    "RetirementExplorerApi",
    "DataLayer",
    "Wallet",
    "RegistryClientError",
    "ApiKeyInvalid",
    "UpstreamError",
]
