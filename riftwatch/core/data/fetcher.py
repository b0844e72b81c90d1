"""
Rate-limited, paginated client for the upstream card price source.

Pages are requested strictly one after another with a fixed pause between
them so the client never exceeds the source's requests-per-minute ceiling.
Any non-success response aborts the whole fetch with a FetchError; nothing
is retried here.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from riftwatch.core.config import UpstreamConfig
from riftwatch.core.data.models import RawCard
from riftwatch.core.exceptions import ConfigError, FetchError, RateLimitError
from riftwatch.core.logging import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class PageMeta(BaseModel):
    """Pagination metadata attached to each upstream page."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total: int | None = None
    has_more: bool | None = Field(default=None, alias="hasMore")


class PageEnvelope(BaseModel):
    """Top-level shape of an upstream ``/cards`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: list[Any] = Field(default_factory=list)
    meta: PageMeta | None = None
    has_more: bool | None = Field(default=None, alias="hasMore")

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def continuation(self) -> bool | None:
        if self.meta is not None and self.meta.has_more is not None:
            return self.meta.has_more
        return self.has_more


@dataclass(slots=True, frozen=True)
class Page:
    """One fetched page: its raw records and the continuation flag, if any."""

    offset: int
    records: list[Any]
    has_more: bool | None
    total: int | None = None


def parse_card(payload: Any) -> RawCard | None:
    """Build a RawCard from a raw record, or None when the record is unusable."""

    if not isinstance(payload, dict) or payload.get("id") in (None, ""):
        return None
    return RawCard.from_payload(payload)


class PaginatedFetcher:
    """Walks the upstream card listing page by page."""

    def __init__(
        self,
        config: UpstreamConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        config.validate()
        if not config.api_key:
            raise ConfigError("An upstream API key is required to fetch prices")
        self.config = config
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self.pages_fetched = 0

    async def __aenter__(self) -> PaginatedFetcher:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers={"x-api-key": self.config.api_key, "Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _params(self, offset: int, page_size: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "game": self.config.game,
            "limit": page_size,
            "offset": offset,
            "include": "variants",
        }
        if self.config.condition:
            params["condition"] = self.config.condition
        if self.config.sealed is not None:
            params["sealed"] = "true" if self.config.sealed else "false"
        return params

    async def fetch_page(self, offset: int, page_size: int | None = None) -> Page:
        """Fetch a single page starting at ``offset``."""

        page_size = page_size or self.config.page_size
        client = self._ensure_client()
        try:
            resp = await client.get("/cards", params=self._params(offset, page_size))
        except httpx.HTTPError as exc:
            raise FetchError(f"Network error contacting price source: {exc}", offset=offset) from exc

        if resp.status_code == 429:
            raise RateLimitError(
                "Price source rate limit hit",
                offset=offset,
                retry_after=_retry_after(resp),
            )
        if not resp.is_success:
            raise FetchError(
                f"Price source returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
                offset=offset,
            )

        try:
            envelope = PageEnvelope.model_validate(resp.json())
        except ValueError as exc:
            raise FetchError(
                f"Malformed page from price source: {exc}",
                status_code=resp.status_code,
                offset=offset,
            ) from exc

        total = envelope.meta.total if envelope.meta else None
        return Page(offset=offset, records=envelope.data, has_more=envelope.continuation, total=total)

    async def iter_cards(
        self,
        page_size: int | None = None,
        max_pages: int | None = None,
    ) -> AsyncIterator[RawCard]:
        """Lazily yield every card across all pages.

        Stops on an explicit ``hasMore: false``, an empty page, a short page
        (fewer records than ``page_size``, whatever the flag says) or after
        ``max_pages`` requests. ``max_pages`` can only lower the configured cap.
        """

        page_size = page_size or self.config.page_size
        max_pages = min(max_pages or self.config.max_pages, self.config.max_pages)
        self.pages_fetched = 0
        fetched = 0

        while self.pages_fetched < max_pages:
            if self.pages_fetched > 0:
                await self._sleep(self.config.inter_page_delay)

            offset = self.pages_fetched * page_size
            page = await self.fetch_page(offset, page_size)
            self.pages_fetched += 1
            count = len(page.records)
            fetched += count
            logger.info(
                "Fetched page {} (offset={}): {} records, {} so far",
                self.pages_fetched,
                offset,
                count,
                fetched,
            )

            for record in page.records:
                card = parse_card(record)
                if card is None:
                    logger.debug("Skipping malformed card record at offset {}", offset)
                    continue
                yield card

            if count == 0 or count < page_size or page.has_more is False:
                return

        logger.warning("Stopped after max_pages={} with more pages reported", max_pages)

    async def fetch_all(
        self,
        page_size: int | None = None,
        max_pages: int | None = None,
    ) -> list[RawCard]:
        """Collect every card into a list; any FetchError discards the partial result."""

        return [card async for card in self.iter_cards(page_size=page_size, max_pages=max_pages)]


def _retry_after(resp: httpx.Response) -> int | None:
    value = resp.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


__all__ = ["Page", "PageEnvelope", "PageMeta", "PaginatedFetcher", "parse_card"]
