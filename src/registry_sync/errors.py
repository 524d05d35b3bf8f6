"""
Error taxonomy for the synchronization-confirmation protocol.

Conditions that are not yet met are not errors; they drive the next poll.
Timeouts of bounded watchers are reported as ``False``, never raised.
"""


class SyncError(Exception):
    """Base error for registry sync coordination."""

    pass


class FatalSyncError(SyncError):
    """Unrecoverable condition that aborts the current write flow. Never retried."""

    pass


class EmptyRegistryError(FatalSyncError):
    """Confirmed registry root equals the empty-tree sentinel."""

    pass


class SyncCancelled(SyncError):
    """Sync wait aborted by a cancel signal or deadline."""

    pass


class SourceUnavailable(SyncError):
    """Transport or parsing failure while sampling a polled source."""

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.details = details
