from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

_ENV_VARS = (
    "RIFTWATCH_API_KEY",
    "JUSTTCG_API_KEY",
    "RIFTWATCH_DATABASE",
    "RIFTWATCH_MAX_PAGES",
    "RIFTWATCH_PAGE_DELAY",
    "RIFTWATCH_LOG_LEVEL",
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    return tmp_path / "prices.duckdb"


@pytest.fixture
def base_args(tmp_path: Path, database_path: Path, monkeypatch: pytest.MonkeyPatch) -> list[str]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return ["--config", str(tmp_path / "absent.toml"), "--db", str(database_path), "--log-level", "ERROR"]


@pytest.fixture
def read_jsonl() -> Callable[[Path], list[dict[str, object]]]:
    def _read(path: Path) -> list[dict[str, object]]:
        return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]

    return _read
