"""riftwatch - card market price snapshots and ranking queries."""

__version__ = "0.1.0"
