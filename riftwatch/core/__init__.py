"""riftwatch core: ingestion pipeline, snapshot storage and ranking queries."""
