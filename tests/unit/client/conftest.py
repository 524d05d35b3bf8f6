"""
Fixtures for HTTP client tests: an httpx.MockTransport router and fakes for
the wallet / data layer collaborators of RegistryApi.
"""

import json

import httpx
import pytest

from registry_client.registry import RegistryApi
from registry_sync.models import LedgerRoot


class Router:
    """Routes (METHOD, path) to scripted responses and records every request.

    A route value is an httpx.Response, a callable(request) -> httpx.Response,
    or a list of either (consumed in order, last one repeats).
    """

    def __init__(self, routes: dict):
        self.routes = {k: (list(v) if isinstance(v, list) else [v]) for k, v in routes.items()}
        self.requests: list[httpx.Request] = []
        self._hits: dict = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"no route {key}"})
        script = self.routes[key]
        hit = self._hits.get(key, 0)
        self._hits[key] = hit + 1
        item = script[min(hit, len(script) - 1)]
        if isinstance(item, Exception):
            raise item
        return item(request) if callable(item) else item

    def hits(self, method: str, path: str) -> int:
        return self._hits.get((method, path), 0)

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def router_client():
    """Factory returning (Router, httpx.AsyncClient) for the given routes."""

    def _make(routes: dict):
        router = Router(routes)
        return router, httpx.AsyncClient(transport=httpx.MockTransport(router))

    return _make


class FakeWallet:
    def __init__(self):
        self.waits = 0

    async def wait_for_all_transactions_to_confirm(self) -> bool:
        self.waits += 1
        return True


class StaticLedger:
    """Ledger that always reports the given hashes as confirmed."""

    def __init__(self, registry_hash="0xreg", org_hash="0xorg"):
        self.roots = {"registry-1": registry_hash, "org-1": org_hash}
        self.requested = []

    async def get_root(self, tree_id: str) -> LedgerRoot:
        self.requested.append(tree_id)
        return LedgerRoot(hash=self.roots[tree_id], confirmed=True)


async def _no_sleep(_):
    return None


ORGANIZATIONS = {
    "org-1": {
        "orgUid": "org-1",
        "registryId": "registry-1",
        "registryHash": "0xreg",
        "orgHash": "0xorg",
        "name": "Home Org",
        "isHome": True,
    },
    "org-2": {"orgUid": "org-2", "registryId": "registry-2", "isHome": False},
}


@pytest.fixture
def organizations():
    return json.loads(json.dumps(ORGANIZATIONS))


@pytest.fixture
def fake_wallet():
    return FakeWallet()


@pytest.fixture
def static_ledger():
    return StaticLedger()


@pytest.fixture
def make_registry_api(router_client, fake_wallet, static_ledger):
    """Factory for RegistryApi over a mock transport with instant sleeps."""

    def _make(routes: dict, **kwargs):
        router, client = router_client(routes)
        kwargs.setdefault("wallet", fake_wallet)
        kwargs.setdefault("datalayer", static_ledger)
        kwargs.setdefault("sleep", _no_sleep)
        api = RegistryApi("http://registry.test", client=client, **kwargs)
        return api, router

    return _make
