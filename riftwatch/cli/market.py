"""Market query commands: ``movers``, ``highest`` and ``search``."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import contextmanager
from typing import Iterator

import typer

from riftwatch.core.data.models import CardPrice, Tier, Window
from riftwatch.core.exceptions import QueryValidationError
from riftwatch.core.services.formatting import (
    NO_SNAPSHOT,
    NO_TIER_DATA,
    format_delta,
    format_price,
    format_search_delta,
)
from riftwatch.core.services.rankings import RankingService, TieredMovers

from .constants import VALIDATION_EXIT_CODE
from .utils import clamp_top, emit_error, load_config, open_store, prepare_output

MOVERS_COLUMNS = ["direction", "rank", "name", "printing", "rarity", "price", "change"]
TIERED_MOVERS_COLUMNS = ["direction", "tier", "rank", "name", "printing", "rarity", "price", "change"]
HIGHEST_COLUMNS = ["rank", "name", "set", "printing", "rarity", "price"]
SEARCH_COLUMNS = ["name", "set", "printing", "rarity", "price", "change_24h", "change_7d"]


def register(app: typer.Typer) -> None:
    app.command("movers")(movers_command)
    app.command("highest")(highest_command)
    app.command("search")(search_command)


@contextmanager
def ranking_service(ctx: typer.Context) -> Iterator[RankingService]:
    """Yield a ranking service bound to the configured database."""

    with open_store(load_config(ctx)) as store:
        yield RankingService(store)


def _run_query(ctx: typer.Context, query: Callable[[RankingService], object]) -> object:
    try:
        with ranking_service(ctx) as service:
            return query(service)
    except QueryValidationError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from error


def _no_snapshot(ctx: typer.Context) -> None:
    err = ctx.obj.get("format") != "table" if ctx.obj else False
    typer.echo(NO_SNAPSHOT, err=err)


def _row(row: CardPrice, **extra: object) -> dict[str, object]:
    return {
        "name": row.display_name,
        "set": row.set_name,
        "printing": row.printing,
        "rarity": row.rarity,
        "price": format_price(row.market_price),
        **extra,
    }


def _tier_rows(direction: str, tiers: TieredMovers, window: Window) -> list[Mapping[str, object]]:
    rows: list[Mapping[str, object]] = []
    for tier in Tier:
        bucket = tiers.bucket(tier)
        if not bucket:
            rows.append({"direction": direction, "tier": tier.value, "name": NO_TIER_DATA})
            continue
        for rank, row in enumerate(bucket, start=1):
            rows.append(
                _row(row, direction=direction, tier=tier.value, rank=rank, change=format_delta(row.delta(window)))
            )
    return rows


def movers_command(
    ctx: typer.Context,
    top: int = typer.Option(5, "--top", "-n", help="Number of cards per list (1-10)."),
    window: str = typer.Option("24h", "--window", "-w", help="Delta window: 24h or 7d."),
    rarity: str | None = typer.Option(None, "--rarity", help="Only include this rarity."),
    tiered: bool = typer.Option(False, "--tiered", help="Group movers by price tier."),
) -> None:
    """Show the biggest price increases and decreases."""

    top = clamp_top(top)
    result = _run_query(ctx, lambda service: service.get_movers(top, window, rarity, tiered=tiered))
    if not result.has_data:
        _no_snapshot(ctx)
        return

    if tiered:
        rows = _tier_rows("up", result.tiered_increases, result.window)
        rows += _tier_rows("down", result.tiered_decreases, result.window)
        columns = TIERED_MOVERS_COLUMNS
    else:
        rows = [
            _row(row, direction=direction, rank=rank, change=format_delta(row.delta(result.window)))
            for direction, bucket in (("up", result.increases), ("down", result.decreases))
            for rank, row in enumerate(bucket, start=1)
        ]
        columns = MOVERS_COLUMNS

    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(
            rows,
            stream=stream,
            columns=columns,
            title=f"Market movers ({result.window.value}) as of {result.snapshot_date}",
        )
    finally:
        stack.close()


def highest_command(
    ctx: typer.Context,
    top: int = typer.Option(5, "--top", "-n", help="Number of cards to show (1-10)."),
    rarity: str | None = typer.Option(None, "--rarity", help="Only include this rarity."),
) -> None:
    """Show the highest priced cards."""

    top = clamp_top(top)
    result = _run_query(ctx, lambda service: service.get_highest_priced(top, rarity))
    if not result.has_data:
        _no_snapshot(ctx)
        return

    rows = [_row(row, rank=rank) for rank, row in enumerate(result.rows, start=1)]
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream, columns=HIGHEST_COLUMNS, title=f"Highest priced as of {result.snapshot_date}")
    finally:
        stack.close()


def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Part of the card name."),
    top: int = typer.Option(5, "--top", "-n", help="Number of matches to show (1-10)."),
) -> None:
    """Search card prices by name."""

    top = clamp_top(top)
    result = _run_query(ctx, lambda service: service.search_card_prices(query, top))
    if not result.has_data:
        _no_snapshot(ctx)
        return

    rows = [
        _row(
            row,
            change_24h=format_search_delta(row.price_change_24h),
            change_7d=format_search_delta(row.price_change_7d),
        )
        for row in result.rows
    ]
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream, columns=SEARCH_COLUMNS, title=f"Matches for '{result.query}'")
    finally:
        stack.close()


__all__ = [
    "HIGHEST_COLUMNS",
    "MOVERS_COLUMNS",
    "SEARCH_COLUMNS",
    "TIERED_MOVERS_COLUMNS",
    "highest_command",
    "movers_command",
    "ranking_service",
    "register",
    "search_command",
]
