"""Single-flight ingestion: fetch every page, normalize, replace the snapshot once."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from enum import Enum
from time import perf_counter
from uuid import uuid4

from riftwatch.core.data.fetcher import PaginatedFetcher
from riftwatch.core.data.normalizer import normalize
from riftwatch.core.data.storage import SnapshotStore, SnapshotWriteResult, today_utc
from riftwatch.core.exceptions import RiftwatchError
from riftwatch.core.logging import get_logger, log_context

logger = get_logger(__name__)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(slots=True, frozen=True)
class IngestionResult:
    """Summary of a completed ingestion run."""

    run_id: str
    snapshot_date: date
    cards_fetched: int
    pages_fetched: int
    rows_normalized: int
    write: SnapshotWriteResult
    duration_ms: float


class IngestionRunner:
    """Runs ingestion at most once at a time.

    A trigger that arrives while a run is in progress is dropped and logged;
    it is not queued.
    """

    def __init__(self, fetcher: PaginatedFetcher, store: SnapshotStore) -> None:
        self._fetcher = fetcher
        self._store = store
        self._lock = threading.Lock()
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    async def run(self, snapshot_date: date | None = None, max_pages: int | None = None) -> IngestionResult | None:
        """Run one ingestion; returns None when another run is already active.

        Raises:
            FetchError: the upstream failed; the previous snapshot is untouched.
            StoreTransactionError: the write was rolled back.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Ingestion trigger skipped: a run is already in progress")
            return None

        run_id = uuid4().hex
        self._state = RunState.RUNNING
        try:
            with log_context(run_id=run_id, source=self._fetcher.config.game):
                return await self._run(run_id, snapshot_date or today_utc(), max_pages)
        finally:
            self._state = RunState.IDLE
            self._lock.release()

    async def _run(self, run_id: str, snapshot_date: date, max_pages: int | None) -> IngestionResult:
        start = perf_counter()
        logger.info("Starting ingestion run for {}", snapshot_date)
        try:
            cards = await self._fetcher.fetch_all(max_pages=max_pages)
            rows = list(normalize(cards))
            write = self._store.write_snapshot(rows, snapshot_date)
        except RiftwatchError as error:
            logger.bind(error_code=error.error_code).error("Ingestion run failed: {}", error.message)
            raise

        result = IngestionResult(
            run_id=run_id,
            snapshot_date=snapshot_date,
            cards_fetched=len(cards),
            pages_fetched=self._fetcher.pages_fetched,
            rows_normalized=len(rows),
            write=write,
            duration_ms=(perf_counter() - start) * 1000,
        )
        logger.info(
            "Ingestion complete: {} cards over {} pages, {} prices stored",
            result.cards_fetched,
            result.pages_fetched,
            write.rows_written,
        )
        return result


__all__ = ["IngestionResult", "IngestionRunner", "RunState"]
