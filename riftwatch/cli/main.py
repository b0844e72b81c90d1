"""Main entry point for the riftwatch command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from .constants import LOG_LEVELS
from .formatters import create_formatter
from .market import register as register_market_commands
from .snapshot import register as register_snapshot_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for riftwatch."""

    app = typer.Typer(add_completion=False, help="Card market price snapshots and rankings")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Minimum level for structured logs on stderr (default from configuration).",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
        database: str | None = typer.Option(
            None,
            "--database",
            "--db",
            help="DuckDB database file (overrides configuration).",
        ),
        config_path: Path | None = typer.Option(
            None,
            "--config",
            help="Configuration file (default ~/.riftwatch/config.toml).",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        if log_level is not None and log_level.upper() not in LOG_LEVELS:
            raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "no_color": no_color,
                "database": database,
                "config_path": config_path,
                "log_level": log_level.upper() if log_level else None,
            }
        )

    register_snapshot_commands(app)
    register_market_commands(app)
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    app()
