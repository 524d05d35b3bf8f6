from __future__ import annotations

import asyncio
import json
import sys
from typing import Optional

import typer
from loguru import logger

from registry_sync.errors import FatalSyncError, SyncCancelled

from .client import CoreRegistryClient
from .errors import RegistryClientError

app = typer.Typer(help="registry-sync operational CLI")


def _echo(payload) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _run(coro_fn):
    """Run ``coro_fn(core)`` against a fresh client; sync and client errors exit 1."""

    async def _main():
        async with CoreRegistryClient() as core:
            return await coro_fn(core)

    try:
        return asyncio.run(_main())
    except (FatalSyncError, SyncCancelled, RegistryClientError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL", help="loguru level"),
):
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())


# ---------------------------
# Reads
# ---------------------------


@app.command("home-org")
def home_org():
    org = _run(lambda core: core.registry.get_home_org())
    _echo(org.model_dump() if org else None)


@app.command("root")
def root(tree_id: str = typer.Argument(..., help="Data layer tree id")):
    ledger_root = _run(lambda core: core.datalayer.get_root(tree_id))
    _echo(ledger_root.model_dump())


@app.command("last-height")
def last_height():
    _echo({"lastRetiredBlockHeight": _run(lambda core: core.registry.get_last_processed_height())})


@app.command("retirements")
def retirements(
    min_height: int = typer.Option(0, "--min-height"),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
):
    activities = _run(
        lambda core: core.retirement_explorer.get_retirement_activities(page, limit, min_height)
    )
    for activity in activities:
        typer.echo(json.dumps(activity.model_dump(), default=str))


# ---------------------------
# Waits / writes
# ---------------------------


@app.command("sync-wait")
def sync_wait(
    throw_on_empty_registry: bool = typer.Option(False, "--throw-on-empty-registry"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Give up after N seconds"),
):
    """Block until the registry is in sync with the ledger."""
    result = _run(
        lambda core: core.registry.wait_for_registry_data_sync(
            throw_on_empty_registry=throw_on_empty_registry, timeout=timeout
        )
    )
    _echo({"synced": True, "iterations": result.iterations if result else 0})


@app.command("confirm-transaction")
def confirm_transaction(transaction_id: str = typer.Argument(...)):
    confirmed = _run(
        lambda core: core.token_driver.wait_for_tokenization_transaction_confirmation(
            transaction_id
        )
    )
    _echo({"transaction_id": transaction_id, "confirmed": confirmed})
    if not confirmed:
        raise typer.Exit(code=2)


@app.command("confirm-registration")
def confirm_registration():
    confirmed = _run(lambda core: core.registry.confirm_token_registration_on_warehouse())
    _echo({"confirmed": confirmed})
    if not confirmed:
        raise typer.Exit(code=2)


@app.command("set-last-height")
def set_last_height(height: int = typer.Argument(..., min=0)):
    data = _run(lambda core: core.registry.set_last_processed_height(height))
    _echo(data)
    if data is None:
        raise typer.Exit(code=1)


@app.command("commit-staging")
def commit_staging():
    data = _run(lambda core: core.registry.commit_staging_data())
    _echo(data)
    if data is None:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
