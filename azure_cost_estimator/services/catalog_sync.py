"""
Catalog synchronization service.
Drains the Azure retail price feed and merges every consumption entry into
the catalog group stored under its derived catalog id.
"""
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
import asyncio
import logging

from azure_cost_estimator.catalog.identifier import derive_catalog_id
from azure_cost_estimator.catalog.merge import merge_price_entry
from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry
from azure_cost_estimator.pricing.retail_price_feed import RetailPriceFeed
from azure_cost_estimator.storage.price_dump import PriceDumpUploader, PriceDumpError
from azure_cost_estimator.storage.price_store import PriceStore, PersistenceError


logger = logging.getLogger(__name__)


class CatalogSyncError(Exception):
    """Raised at the end of a sync when one or more items could not be persisted."""

    def __init__(self, result: "CatalogSyncResult"):
        super().__init__("one or more items was unable to be written")
        self.result = result


@dataclass
class CatalogSyncResult:
    """Summary of one synchronization run."""
    pages_fetched: int = 0
    items_fetched: int = 0
    consumption_items: int = 0
    items_persisted: int = 0
    items_failed: int = 0
    dump_uploaded: bool = False
    failed_catalog_ids: List[str] = field(default_factory=list, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.items_failed == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization (no per-item detail)."""
        return {
            "status": "ok" if self.succeeded else "partial",
            "pages_fetched": self.pages_fetched,
            "items_fetched": self.items_fetched,
            "consumption_items": self.consumption_items,
            "items_persisted": self.items_persisted,
            "items_failed": self.items_failed,
            "dump_uploaded": self.dump_uploaded,
        }


class CatalogSynchronizer:
    """Service that keeps the stored price catalog in step with the retail feed."""

    def __init__(
        self,
        store: PriceStore,
        feed: Optional[RetailPriceFeed] = None,
        dump_uploader: Optional[PriceDumpUploader] = None
    ):
        """
        Initialize synchronizer.

        Args:
            store: Catalog group store
            feed: Retail price feed client (creates new if None)
            dump_uploader: Optional archival uploader for the full listing
        """
        self.store = store
        self.feed = feed or RetailPriceFeed()
        self.dump_uploader = dump_uploader

    def merge_entry(self, entry: PriceCatalogEntry) -> str:
        """
        Read-merge-write one entry into its stored group.

        Args:
            entry: Consumption entry from the feed

        Returns:
            The catalog id the entry was written under

        Raises:
            PersistenceError: If the group cannot be read or written
        """
        catalog_id = derive_catalog_id(entry)
        logger.info(f"Processing: {catalog_id}")

        existing = self.store.get(catalog_id) or []
        merged = merge_price_entry(entry, existing)
        self.store.put(catalog_id, merged)
        return catalog_id

    def persist_entries(
        self,
        entries: List[PriceCatalogEntry],
        result: Optional[CatalogSyncResult] = None
    ) -> CatalogSyncResult:
        """
        Merge every consumption entry of a listing into the store.

        Failures are logged and counted; processing continues with the next
        entry. Nothing is retried.

        Args:
            entries: Full feed listing
            result: Result to accumulate into (creates new if None)

        Returns:
            CatalogSyncResult with persistence counters filled in
        """
        result = result or CatalogSyncResult(items_fetched=len(entries))

        for entry in entries:
            # Only pay-as-you-go pricing is kept
            if not entry.is_consumption:
                continue
            result.consumption_items += 1

            try:
                self.merge_entry(entry)
            except PersistenceError as error:
                catalog_id = error.catalog_id or derive_catalog_id(entry)
                logger.error(
                    f"Failed to persist {catalog_id} (meter {entry.meter_id}): "
                    f"{type(error).__name__}: {error}"
                )
                result.items_failed += 1
                result.failed_catalog_ids.append(catalog_id)
                continue

            result.items_persisted += 1

        return result

    async def sync(self) -> CatalogSyncResult:
        """
        Run one full synchronization.

        Returns:
            CatalogSyncResult when every consumption entry was persisted

        Raises:
            FeedTransportError: If a feed page cannot be fetched (no writes happen)
            FeedParseError: If a feed page is malformed (no writes happen)
            CatalogSyncError: If one or more entries failed to persist
        """
        listing = await self.feed.fetch_all()
        result = CatalogSyncResult(
            pages_fetched=listing.pages_fetched,
            items_fetched=len(listing.entries)
        )

        if self.dump_uploader is not None:
            try:
                await asyncio.to_thread(self.dump_uploader.upload, listing.entries)
                result.dump_uploaded = True
            except PriceDumpError as error:
                logger.warning(f"Continuing without price dump: {error}")

        # Store clients block; run the merge loop off the event loop
        await asyncio.to_thread(self.persist_entries, listing.entries, result)

        logger.info(
            f"Catalog sync finished: {result.items_persisted}/{result.consumption_items} "
            f"consumption items persisted, {result.items_failed} failed"
        )
        if not result.succeeded:
            raise CatalogSyncError(result)
        return result
