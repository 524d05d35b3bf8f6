"""
Pytest configuration and fixtures for registry-sync-client.

Provides cross-platform event loop configuration, scripted fake sources for
the sync watchers and a loguru capture fixture.
"""

import asyncio
import sys
from typing import Optional

import pytest
from loguru import logger

from registry_sync.errors import SourceUnavailable
from registry_sync.models import ConfirmationStatus, HomeOrganization, LedgerRoot

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


class Script:
    """Returns scripted values in order, repeating the last one forever.

    Exception instances in the script are raised instead of returned.
    """

    def __init__(self, values):
        if not values:
            raise ValueError("script needs at least one value")
        self.values = list(values)
        self.calls = 0

    def next(self):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        if isinstance(value, BaseException):
            raise value
        return value


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays and yields once."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class FakeRegistry:
    """HomeOrganizationSource replaying a script of home orgs (None = missing)."""

    def __init__(self, *orgs: Optional[HomeOrganization]):
        self.script = Script(orgs)

    @property
    def calls(self) -> int:
        return self.script.calls

    async def get_home_org(self) -> Optional[HomeOrganization]:
        await asyncio.sleep(0)
        return self.script.next()


class FakeLedger:
    """LedgerNode replaying one script of roots per tree id."""

    def __init__(self, roots: dict):
        self.scripts = {tree_id: Script(values) for tree_id, values in roots.items()}
        self.requested: list[str] = []

    async def get_root(self, tree_id: str) -> LedgerRoot:
        self.requested.append(tree_id)
        await asyncio.sleep(0)
        return self.scripts[tree_id].next()


class FakeConfirmations:
    """TransactionSource + StagingQueueSource replaying confirmation flags."""

    def __init__(self, *flags):
        self.script = Script(
            [f if isinstance(f, BaseException) else ConfirmationStatus(confirmed=f) for f in flags]
        )
        self.transaction_ids: list[str] = []

    @property
    def calls(self) -> int:
        return self.script.calls

    async def confirm_transaction(self, transaction_id: str) -> ConfirmationStatus:
        self.transaction_ids.append(transaction_id)
        return self.script.next()

    async def has_pending_transactions(self) -> ConfirmationStatus:
        return self.script.next()


HOME_ORG = HomeOrganization(
    orgUid="org-1", registryId="registry-1", registryHash="0xreg", orgHash="0xorg"
)
REGISTRY_ROOT = LedgerRoot(hash="0xreg", confirmed=True)
ORG_ROOT = LedgerRoot(hash="0xorg", confirmed=True)


@pytest.fixture
def home_org():
    return HOME_ORG


@pytest.fixture
def synced_ledger():
    """Ledger whose roots already match HOME_ORG."""
    return FakeLedger({"registry-1": [REGISTRY_ROOT], "org-1": [ORG_ROOT]})


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_registry():
    return FakeRegistry


@pytest.fixture
def make_ledger():
    return FakeLedger


@pytest.fixture
def make_confirmations():
    return FakeConfirmations


@pytest.fixture
def unavailable():
    """Factory for a transport failure raised by a fake source."""

    def _make(message: str = "connection reset", details=None):
        return SourceUnavailable(message, details)

    return _make


@pytest.fixture
def log_records():
    """Loguru records emitted during the test (DEBUG and above)."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
