"""DuckDB connection factory and the snapshot store."""

from riftwatch.core.data.storage.duckdb_factory import DuckDBFactoryConfig, RiftwatchDuckDBFactory
from riftwatch.core.data.storage.snapshot_store import (
    SnapshotInfo,
    SnapshotStore,
    SnapshotWriteResult,
    today_utc,
)

__all__ = [
    "DuckDBFactoryConfig",
    "RiftwatchDuckDBFactory",
    "SnapshotInfo",
    "SnapshotStore",
    "SnapshotWriteResult",
    "today_utc",
]
