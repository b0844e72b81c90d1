"""Pytest configuration and shared fixtures for the riftwatch test suite."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from decimal import Decimal
from typing import Any

import duckdb
import httpx
import pytest

from riftwatch.core.config import UpstreamConfig
from riftwatch.core.data.models import SnapshotRow
from riftwatch.core.data.storage import SnapshotStore


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--riftwatch-run-integration",
        action="store_true",
        default=False,
        help="Run riftwatch integration tests that require the live price source.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--riftwatch-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --riftwatch-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def conn() -> Iterator[duckdb.DuckDBPyConnection]:
    connection = duckdb.connect(database=":memory:")
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def store(conn: duckdb.DuckDBPyConnection) -> SnapshotStore:
    return SnapshotStore(conn)


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(api_key="test-key", base_url="https://prices.test/v1")


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


def make_card(index: int, **overrides: Any) -> dict[str, Any]:
    card = {
        "id": f"card-{index}",
        "name": f"Card {index}",
        "set": "Origins",
        "rarity": "Common",
        "variants": [
            {
                "printing": "Normal",
                "condition": "Near Mint",
                "price": 1.5,
                "priceChange24hr": 0.1,
                "priceChange7d": -0.2,
            }
        ],
    }
    card.update(overrides)
    return card


@pytest.fixture
def card_factory() -> Callable[..., dict[str, Any]]:
    return make_card


class PagedSource:
    """Serves pre-built pages through an httpx.MockTransport and records each request."""

    def __init__(
        self,
        page_sizes: list[int],
        has_more: list[bool | None] | None = None,
        status_codes: dict[int, int] | None = None,
    ) -> None:
        self.page_sizes = page_sizes
        self.has_more = has_more or [True] * len(page_sizes)
        self.status_codes = status_codes or {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page_index = len(self.requests) - 1
        status = self.status_codes.get(page_index)
        if status is not None:
            return httpx.Response(status, text="upstream unavailable")
        if page_index >= len(self.page_sizes):
            return httpx.Response(200, json={"data": [], "meta": {"hasMore": False}})
        start = sum(self.page_sizes[:page_index])
        cards = [make_card(start + i) for i in range(self.page_sizes[page_index])]
        meta = {"total": sum(self.page_sizes), "hasMore": self.has_more[page_index]}
        return httpx.Response(200, content=json.dumps({"data": cards, "meta": meta}))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def offsets(self) -> list[int]:
        return [int(request.url.params["offset"]) for request in self.requests]


@pytest.fixture
def paged_source() -> Callable[..., PagedSource]:
    return PagedSource


def snapshot_row(
    product_id: str,
    price: str | None,
    *,
    name: str | None = None,
    rarity: str | None = "Common",
    printing: str = "Non-Foil",
    change_24h: str | None = None,
    change_7d: str | None = None,
    set_name: str | None = "Origins",
) -> SnapshotRow:
    return SnapshotRow(
        product_id=product_id,
        name=name if name is not None else f"Card {product_id}",
        set_name=set_name,
        rarity=rarity,
        printing=printing,
        condition="Near Mint",
        market_price=Decimal(price) if price is not None else None,
        price_change_24h=Decimal(change_24h) if change_24h is not None else None,
        price_change_7d=Decimal(change_7d) if change_7d is not None else None,
    )


@pytest.fixture
def row_factory() -> Callable[..., SnapshotRow]:
    return snapshot_row
