"""
Unit tests for the DataLayer and Wallet RPC clients.
"""

import asyncio

import httpx
import pytest

from registry_client.chia import DataLayer, Wallet, build_ssl_context
from registry_client.config import ChiaSettings
from registry_client.errors import UpstreamError
from registry_sync.errors import SyncCancelled


async def _no_sleep(_):
    return None


@pytest.mark.asyncio
async def test_get_root(router_client):
    router, client = router_client(
        {
            ("POST", "/get_root"): httpx.Response(
                200, json={"success": True, "confirmed": True, "hash": "0xabc", "timestamp": 1}
            )
        }
    )
    datalayer = DataLayer("https://127.0.0.1:8562", client=client)

    root = await datalayer.get_root("registry-1")

    assert root.confirmed is True
    assert root.hash == "0xabc"
    assert router.body() == {"id": "registry-1"}


@pytest.mark.asyncio
async def test_get_root_unsuccessful_rpc(router_client):
    _, client = router_client(
        {("POST", "/get_root"): httpx.Response(200, json={"success": False, "error": "no store"})}
    )
    datalayer = DataLayer("https://127.0.0.1:8562", client=client)

    with pytest.raises(UpstreamError, match="no store") as exc_info:
        await datalayer.get_root("missing")
    assert exc_info.value.details == {"success": False, "error": "no store"}


@pytest.mark.asyncio
async def test_has_unconfirmed_transactions(router_client):
    router, client = router_client(
        {
            ("POST", "/get_transactions"): httpx.Response(
                200,
                json={
                    "success": True,
                    "transactions": [{"confirmed": True}, {"confirmed": False}],
                },
            )
        }
    )
    wallet = Wallet("https://127.0.0.1:9256", client=client)

    assert await wallet.has_unconfirmed_transactions() is True
    assert router.body()["wallet_id"] == 1


@pytest.mark.asyncio
async def test_has_unconfirmed_transactions_skips_non_dict_entries(router_client):
    _, client = router_client(
        {
            ("POST", "/get_transactions"): httpx.Response(
                200, json={"success": True, "transactions": ["junk", None, {"confirmed": True}]}
            )
        }
    )
    wallet = Wallet("https://127.0.0.1:9256", client=client)

    assert await wallet.has_unconfirmed_transactions() is False


@pytest.mark.asyncio
async def test_has_unconfirmed_transactions_rejects_non_list(router_client):
    _, client = router_client(
        {
            ("POST", "/get_transactions"): httpx.Response(
                200, json={"success": True, "transactions": "oops"}
            )
        }
    )
    wallet = Wallet("https://127.0.0.1:9256", client=client)

    with pytest.raises(UpstreamError, match="unexpected transactions payload"):
        await wallet.has_unconfirmed_transactions()


@pytest.mark.asyncio
async def test_wait_for_all_transactions_to_confirm(router_client):
    pending = {"success": True, "transactions": [{"confirmed": False}]}
    settled = {"success": True, "transactions": [{"confirmed": True}]}
    router, client = router_client(
        {
            ("POST", "/get_transactions"): [
                httpx.Response(200, json=pending),
                httpx.Response(200, json=pending),
                httpx.Response(200, json=settled),
            ]
        }
    )
    wallet = Wallet("https://127.0.0.1:9256", client=client, sleep=_no_sleep)

    assert await wallet.wait_for_all_transactions_to_confirm() is True
    assert router.hits("POST", "/get_transactions") == 3


@pytest.mark.asyncio
async def test_wallet_wait_cancellable(router_client):
    pending = {"success": True, "transactions": [{"confirmed": False}]}
    _, client = router_client({("POST", "/get_transactions"): httpx.Response(200, json=pending)})
    cancel = asyncio.Event()

    async def sleep(_):
        cancel.set()

    wallet = Wallet("https://127.0.0.1:9256", client=client, sleep=sleep)

    with pytest.raises(SyncCancelled):
        await wallet.wait_for_all_transactions_to_confirm(cancel=cancel)


def test_ssl_context_missing_certs_falls_back(tmp_path):
    assert build_ssl_context(str(tmp_path), "wallet", allow_self_signed=True) is False
    assert build_ssl_context(str(tmp_path), "wallet", allow_self_signed=False) is True


@pytest.mark.asyncio
async def test_from_settings_uses_configured_hosts(tmp_path):
    chia = ChiaSettings(
        DATALAYER_HOST="https://node:8562",
        WALLET_HOST="https://node:9256",
        CERTIFICATE_FOLDER_PATH=str(tmp_path),
    )

    async with DataLayer.from_settings(chia) as datalayer, Wallet.from_settings(chia) as wallet:
        assert datalayer.url("/get_root") == "https://node:8562/get_root"
        assert wallet.url("/get_transactions") == "https://node:9256/get_transactions"
