"""
Paginated reader for the Azure Retail Prices API.
Uses the public REST API (no authentication required).
"""
from typing import List, Optional, Tuple
from dataclasses import dataclass
import logging

import httpx

from azure_cost_estimator.core.config import config
from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry


logger = logging.getLogger(__name__)


class FeedTransportError(Exception):
    """Raised when a feed page cannot be fetched or returns an error status."""
    pass


class FeedParseError(Exception):
    """Raised when a feed page is not a valid price listing."""
    pass


@dataclass
class FeedListing:
    """Every item of a fully drained feed, in feed order."""
    entries: List[PriceCatalogEntry]
    pages_fetched: int


class RetailPriceFeed:
    """Client that drains the retail price feed by following NextPageLink."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize feed client.

        Args:
            api_url: First page URL (defaults to AZURE_PRICING_API_URL)
            timeout: Per-request timeout in seconds (defaults to CATALOG_FEED_TIMEOUT)
            http_client: Shared httpx client (a new one is opened per drain if None)
        """
        self.api_url = api_url or config.AZURE_PRICING_API_URL
        self.timeout = timeout if timeout is not None else config.CATALOG_FEED_TIMEOUT
        self.http_client = http_client

    async def fetch_page(
        self,
        client: httpx.AsyncClient,
        url: str
    ) -> Tuple[List[PriceCatalogEntry], Optional[str]]:
        """
        Fetch and decode one feed page.

        Args:
            client: httpx client to issue the request with
            url: Page URL

        Returns:
            Tuple of (entries on the page, next page URL or None)

        Raises:
            FeedTransportError: If the request fails or the status is not 2xx
            FeedParseError: If the body is not a price listing
        """
        logger.info(f"GET {url}")
        try:
            response = await client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            logger.error(f"Retail price feed HTTP error: {error}")
            raise FeedTransportError(
                f"Retail price feed returned {error.response.status_code} for {url}"
            ) from error
        except httpx.RequestError as error:
            logger.error(f"Retail price feed request error: {error}")
            raise FeedTransportError(f"Failed to connect to retail price feed: {str(error)}") from error

        try:
            data = response.json()
        except ValueError as error:
            raise FeedParseError(f"Retail price feed page is not JSON: {url}") from error

        if not isinstance(data, dict) or not isinstance(data.get("Items"), list):
            raise FeedParseError(f"Retail price feed page has no Items array: {url}")

        try:
            entries = [PriceCatalogEntry.from_api_item(item) for item in data["Items"]]
        except (TypeError, ValueError) as error:
            raise FeedParseError(f"Malformed price item on {url}: {error}") from error

        next_link = data.get("NextPageLink")
        if not isinstance(next_link, str) or not next_link:
            next_link = None
        return entries, next_link

    async def fetch_all(self) -> FeedListing:
        """
        Drain the feed, following NextPageLink until it is empty.

        Returns:
            FeedListing with the items of every page

        Raises:
            FeedTransportError: If any page fails; nothing is returned
            FeedParseError: If any page is malformed; nothing is returned
        """
        if self.http_client is not None:
            return await self._drain(self.http_client)

        async with httpx.AsyncClient() as client:
            return await self._drain(client)

    async def _drain(self, client: httpx.AsyncClient) -> FeedListing:
        entries: List[PriceCatalogEntry] = []
        pages = 0
        url: Optional[str] = self.api_url

        while url:
            page_entries, url = await self.fetch_page(client, url)
            entries.extend(page_entries)
            pages += 1

        logger.info(f"Fetched {len(entries)} price items across {pages} pages")
        return FeedListing(entries=entries, pages_fetched=pages)
