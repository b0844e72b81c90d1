"""Query and ingestion services."""

from riftwatch.core.services.ingestion import IngestionResult, IngestionRunner, RunState
from riftwatch.core.services.rankings import (
    MoversResult,
    PricedResult,
    RankingService,
    SearchResult,
    TieredMovers,
)

__all__ = [
    "IngestionResult",
    "IngestionRunner",
    "MoversResult",
    "PricedResult",
    "RankingService",
    "RunState",
    "SearchResult",
    "TieredMovers",
]
