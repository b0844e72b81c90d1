import asyncio
from datetime import date

import pytest

from riftwatch.core.data.fetcher import PaginatedFetcher
from riftwatch.core.exceptions import FetchError
from riftwatch.core.services.ingestion import IngestionRunner, RunState
from riftwatch.core.services.rankings import RankingService

AS_OF = date(2025, 6, 1)


@pytest.mark.asyncio
async def test_run_fetches_normalizes_and_stores(upstream_config, paged_source, recording_sleep, store) -> None:
    source = paged_source([20, 20, 5])

    async with PaginatedFetcher(upstream_config, transport=source.transport, sleep=recording_sleep) as fetcher:
        result = await IngestionRunner(fetcher, store).run(snapshot_date=AS_OF)

    assert result is not None
    assert result.snapshot_date == AS_OF
    assert result.cards_fetched == 45
    assert result.pages_fetched == 3
    assert result.rows_normalized == 45
    assert result.write.rows_written == 45
    assert store.snapshot_info().row_count == 45

    movers = RankingService(store).get_movers(limit=3)
    assert [row.product_id for row in movers.increases] == ["card-0", "card-1", "card-2"]


@pytest.mark.asyncio
async def test_fetch_failure_leaves_previous_snapshot(
    upstream_config, paged_source, recording_sleep, store, row_factory
) -> None:
    store.write_snapshot([row_factory("keep", "1.00")], date(2025, 5, 31))
    source = paged_source([20, 20, 20], status_codes={2: 500})

    async with PaginatedFetcher(upstream_config, transport=source.transport, sleep=recording_sleep) as fetcher:
        runner = IngestionRunner(fetcher, store)
        with pytest.raises(FetchError):
            await runner.run(snapshot_date=AS_OF)

    info = store.snapshot_info()
    assert info.snapshot_date == date(2025, 5, 31)
    assert info.row_count == 1
    assert runner.state is RunState.IDLE


@pytest.mark.asyncio
async def test_overlapping_trigger_is_skipped(upstream_config, paged_source, store) -> None:
    gate = asyncio.Event()

    async def blocking_sleep(delay: float) -> None:
        await gate.wait()

    source = paged_source([20, 3])
    async with PaginatedFetcher(upstream_config, transport=source.transport, sleep=blocking_sleep) as fetcher:
        runner = IngestionRunner(fetcher, store)
        first = asyncio.create_task(runner.run(snapshot_date=AS_OF))
        while runner.state is not RunState.RUNNING or not source.requests:
            await asyncio.sleep(0)

        skipped = await runner.run(snapshot_date=AS_OF)
        gate.set()
        completed = await first

    assert skipped is None
    assert completed is not None
    assert completed.cards_fetched == 23
    assert len(source.requests) == 2
    assert runner.state is RunState.IDLE


@pytest.mark.asyncio
async def test_max_pages_limits_run(upstream_config, paged_source, recording_sleep, store) -> None:
    source = paged_source([20] * 5)

    async with PaginatedFetcher(upstream_config, transport=source.transport, sleep=recording_sleep) as fetcher:
        result = await IngestionRunner(fetcher, store).run(snapshot_date=AS_OF, max_pages=2)

    assert result.pages_fetched == 2
    assert result.write.rows_written == 40
