"""Ingestion pipeline pieces: upstream fetcher, normalizer, schema and storage."""

from riftwatch.core.data.fetcher import PaginatedFetcher
from riftwatch.core.data.models import CardPrice, RawCard, SnapshotRow, Tier, Window
from riftwatch.core.data.normalizer import normalize

__all__ = [
    "CardPrice",
    "PaginatedFetcher",
    "RawCard",
    "SnapshotRow",
    "Tier",
    "Window",
    "normalize",
]
