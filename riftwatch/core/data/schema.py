"""DuckDB schema definitions for card metadata and the price snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from duckdb import DuckDBPyConnection

AMOUNT_TYPE = "DECIMAL(18, 4)"
# DuckDB wraps values past the column precision instead of rejecting them.
AMOUNT_LIMIT = Decimal(10) ** 14
_AMOUNT_HALF_STEP = Decimal("0.00005")


@dataclass(frozen=True)
class ColumnDef:
    """Represents a DuckDB table column definition."""

    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        return " ".join([self.name, self.data_type, *self.constraints])


@dataclass(frozen=True)
class TableSchema:
    """Utility wrapper describing a DuckDB table schema."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: Sequence[str] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def create_ddl(self) -> str:
        column_defs: list[str] = [column.render() for column in self.columns]
        if self.primary_key:
            column_defs.append(f"PRIMARY KEY ({', '.join(self.primary_key)})")
        columns_sql = ",\n                ".join(column_defs)
        return f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                {columns_sql}
            )
            """.strip()

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create the table on the provided connection if it does not exist."""

        conn.execute(self.create_ddl())


def fits_amount(value: Decimal) -> bool:
    """True when ``value`` can be stored in an amount column without wrapping."""
    return abs(value) < AMOUNT_LIMIT - _AMOUNT_HALF_STEP


CARDS_TABLE = TableSchema(
    name="cards",
    columns=(
        ColumnDef("product_id", "VARCHAR", ("NOT NULL",)),
        ColumnDef("name", "VARCHAR"),
        ColumnDef("set_name", "VARCHAR"),
        ColumnDef("rarity", "VARCHAR"),
        ColumnDef("last_seen", "DATE", ("NOT NULL",)),
    ),
    primary_key=("product_id",),
)

# (product_id, printing) uniqueness is enforced by the writer; DuckDB checks
# unique keys eagerly inside a transaction, which would reject the
# delete-then-reinsert of an unchanged key.
PRICE_SNAPSHOTS_TABLE = TableSchema(
    name="price_snapshots",
    columns=(
        ColumnDef("seq", "INTEGER", ("NOT NULL",)),
        ColumnDef("product_id", "VARCHAR", ("NOT NULL",)),
        ColumnDef("printing", "VARCHAR", ("NOT NULL",)),
        ColumnDef("snapshot_date", "DATE", ("NOT NULL",)),
        ColumnDef("market_price", AMOUNT_TYPE, ("NOT NULL",)),
        ColumnDef("price_change_24h", AMOUNT_TYPE),
        ColumnDef("price_change_7d", AMOUNT_TYPE),
    ),
)


def snapshot_tables() -> Sequence[TableSchema]:
    return (CARDS_TABLE, PRICE_SNAPSHOTS_TABLE)


def ensure_snapshot_tables(conn: DuckDBPyConnection) -> None:
    """Create the card and snapshot tables on the provided connection."""

    for table in snapshot_tables():
        table.ensure(conn)


__all__ = [
    "AMOUNT_LIMIT",
    "AMOUNT_TYPE",
    "CARDS_TABLE",
    "ColumnDef",
    "PRICE_SNAPSHOTS_TABLE",
    "TableSchema",
    "ensure_snapshot_tables",
    "fits_amount",
    "snapshot_tables",
]
