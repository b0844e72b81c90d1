"""``snapshot`` command: run one ingestion and report what was stored."""

from __future__ import annotations

import asyncio

import typer

from riftwatch.core.config import RiftwatchConfig, UpstreamConfig
from riftwatch.core.data.fetcher import PaginatedFetcher
from riftwatch.core.data.storage import SnapshotStore
from riftwatch.core.exceptions import (
    ConfigError,
    FetchError,
    RiftwatchError,
    StoreTransactionError,
)
from riftwatch.core.services.ingestion import IngestionResult, IngestionRunner

from .constants import FETCH_EXIT_CODE, STORE_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .utils import emit_error, load_config, open_store, prepare_output

SNAPSHOT_COLUMNS = [
    "snapshot_date",
    "cards_fetched",
    "pages_fetched",
    "rows_normalized",
    "rows_written",
    "rows_skipped",
    "duplicates_dropped",
    "duration_ms",
]


def register(app: typer.Typer) -> None:
    app.command("snapshot")(snapshot_command)


def get_fetcher(config: UpstreamConfig) -> PaginatedFetcher:
    """Factory hook for obtaining the upstream fetcher."""

    return PaginatedFetcher(config)


async def _run_ingestion(fetcher: PaginatedFetcher, store: SnapshotStore, max_pages: int | None) -> IngestionResult | None:
    async with fetcher:
        return await IngestionRunner(fetcher, store).run(max_pages=max_pages)


def snapshot_command(
    ctx: typer.Context,
    max_pages: int | None = typer.Option(
        None,
        "--max-pages",
        min=1,
        help="Stop after this many pages (development runs).",
    ),
) -> None:
    """Fetch every card price and replace the stored snapshot."""

    config: RiftwatchConfig = load_config(ctx)
    formatter, stream, stack, _ = prepare_output(ctx)

    try:
        fetcher = get_fetcher(config.upstream)
    except ConfigError as error:
        stack.close()
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from error

    try:
        with open_store(config) as store:
            result = asyncio.run(_run_ingestion(fetcher, store, max_pages))
        if result is None:
            typer.echo("Snapshot skipped: another run is in progress.", err=True)
            return
        formatter.render([_result_row(result)], stream=stream, columns=SNAPSHOT_COLUMNS, title="Snapshot stored")
    except FetchError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=FETCH_EXIT_CODE) from error
    except StoreTransactionError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=STORE_EXIT_CODE) from error
    except RiftwatchError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error
    finally:
        stack.close()


def _result_row(result: IngestionResult) -> dict[str, object]:
    return {
        "snapshot_date": result.snapshot_date.isoformat(),
        "cards_fetched": result.cards_fetched,
        "pages_fetched": result.pages_fetched,
        "rows_normalized": result.rows_normalized,
        "rows_written": result.write.rows_written,
        "rows_skipped": result.write.rows_skipped,
        "duplicates_dropped": result.write.duplicates_dropped,
        "duration_ms": round(result.duration_ms, 1),
    }

__all__ = ["SNAPSHOT_COLUMNS", "get_fetcher", "register", "snapshot_command"]
