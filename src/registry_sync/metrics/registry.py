"""
Prometheus metrics for sync coordination.
Registered in the global REGISTRY on import.
"""

from prometheus_client import Counter, Histogram


# --- Sync gate / ledger sync ---

SYNC_RUNS_TOTAL = Counter(
    "registry_sync_runs_total",
    "Total number of LedgerSyncWatcher runs",
    ["outcome"],
)

SYNC_JOINS_TOTAL = Counter(
    "registry_sync_joins_total",
    "Callers that joined an in-flight sync run instead of starting one",
)

SYNC_ITERATIONS_TOTAL = Counter(
    "registry_sync_iterations_total",
    "Poll iterations performed by LedgerSyncWatcher",
    ["result"],
)

SYNC_WAIT_SECONDS = Histogram(
    "registry_sync_wait_seconds",
    "Wall time spent in a LedgerSyncWatcher run",
    buckets=[1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600],
)

# --- Bounded watchers / retry ---

WATCHER_POLLS_TOTAL = Counter(
    "registry_watcher_polls_total",
    "Polls performed by bounded confirmation watchers",
    ["watcher", "outcome"],
)

RETRY_ATTEMPTS_TOTAL = Counter(
    "registry_retry_attempts_total",
    "Attempts made by RetryExecutor",
    ["outcome"],
)


class MetricsRegistry:
    """Centralized access to sync metrics."""

    sync_runs_total = SYNC_RUNS_TOTAL
    sync_joins_total = SYNC_JOINS_TOTAL
    sync_iterations_total = SYNC_ITERATIONS_TOTAL
    sync_wait_seconds = SYNC_WAIT_SECONDS
    watcher_polls_total = WATCHER_POLLS_TOTAL
    retry_attempts_total = RETRY_ATTEMPTS_TOTAL


# Singleton instance
metrics_registry = MetricsRegistry()
