"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence, TextIO

import typer

from riftwatch.core.config import ConfigManager, RiftwatchConfig
from riftwatch.core.data.storage import DuckDBFactoryConfig, RiftwatchDuckDBFactory, SnapshotStore
from riftwatch.core.exceptions import RiftwatchError
from riftwatch.core.logging import configure_logging

from .constants import MAX_TOP, VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    output_path: Path | None = None
    no_color: bool = False
    database: str | None = None
    config_path: Path | None = None
    log_level: str | None = None


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Extract :class:`CLIOptions` from the Typer context object."""

    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        format=str(data.get("format", "table")),
        output_path=data.get("output_path"),
        no_color=bool(data.get("no_color", False)),
        database=data.get("database"),
        config_path=data.get("config_path"),
        log_level=data.get("log_level"),
    )


def load_config(ctx: typer.Context) -> RiftwatchConfig:
    """Load file and environment configuration, then apply CLI overrides."""

    options = get_cli_options(ctx)
    try:
        config = ConfigManager(options.config_path).get_config()
    except RiftwatchError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from error
    if options.database:
        config.storage.database = options.database
    configure_logging(options.log_level or config.logging.level, file_path=config.logging.file)
    return config


@contextmanager
def open_store(config: RiftwatchConfig) -> Iterator[SnapshotStore]:
    """Open the configured DuckDB database and yield a snapshot store on it."""

    factory = RiftwatchDuckDBFactory(
        DuckDBFactoryConfig(
            database=config.storage.database,
            pragmas={"threads": config.storage.threads},
        )
    )
    with factory.connection() as conn:
        yield SnapshotStore(conn)


def clamp_top(top: int) -> int:
    return max(1, min(top, MAX_TOP))


def prepare_output(ctx: typer.Context) -> tuple[OutputFormatter, TextIO, ExitStack, CLIOptions]:
    """Resolve formatter and writable stream for the current command."""

    options = get_cli_options(ctx)
    formatter = create_formatter(options.format, no_color=options.no_color)

    stack = ExitStack()
    stream: TextIO
    if options.output_path is not None:
        try:
            stream = stack.enter_context(open(options.output_path, "w", encoding="utf-8"))
        except OSError as exc:
            stack.close()
            emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    else:
        stream = sys.stdout

    return formatter, stream, stack, options


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = [
    "CLIOptions",
    "clamp_top",
    "emit_error",
    "get_cli_options",
    "load_config",
    "open_store",
    "prepare_output",
]
