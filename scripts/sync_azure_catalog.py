#!/usr/bin/env python3
"""
Run one Azure retail price catalog synchronization.

Usage:
    CATALOG_STORE=dynamodb DYNAMO_TABLE=azure-prices python scripts/sync_azure_catalog.py
    python scripts/sync_azure_catalog.py --store memory --feed-url "https://prices.azure.com/api/retail/prices?\$filter=serviceName eq 'Virtual Machines'"
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from azure_cost_estimator.core.config import config  # noqa: E402
from azure_cost_estimator.pricing.retail_price_feed import (  # noqa: E402
    FeedParseError,
    FeedTransportError,
    RetailPriceFeed,
)
from azure_cost_estimator.services.catalog_sync import CatalogSyncError, CatalogSynchronizer  # noqa: E402
from azure_cost_estimator.storage.price_dump import create_price_dump_uploader  # noqa: E402
from azure_cost_estimator.storage.price_store import DynamoPriceStore, InMemoryPriceStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the Azure retail price catalog.")
    parser.add_argument(
        "--store",
        choices=("dynamodb", "memory"),
        default=config.CATALOG_STORE,
        help="Catalog store to merge into (default: CATALOG_STORE).",
    )
    parser.add_argument(
        "--feed-url",
        default=config.AZURE_PRICING_API_URL,
        help="First feed page URL (default: AZURE_PRICING_API_URL).",
    )
    parser.add_argument(
        "--no-dump",
        action="store_true",
        help="Skip the S3 archival dump even if S3_BUCKET is set.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.store == "dynamodb":
        if not config.DYNAMO_TABLE:
            print("DYNAMO_TABLE is required for the dynamodb store", file=sys.stderr)
            return 2
        store = DynamoPriceStore()
    else:
        store = InMemoryPriceStore()

    synchronizer = CatalogSynchronizer(
        store=store,
        feed=RetailPriceFeed(api_url=args.feed_url),
        dump_uploader=None if args.no_dump else create_price_dump_uploader(),
    )

    try:
        result = asyncio.run(synchronizer.sync())
    except (FeedTransportError, FeedParseError) as exc:
        print(f"Catalog sync aborted: {exc}", file=sys.stderr)
        return 1
    except CatalogSyncError as exc:
        print(json.dumps(exc.result.to_dict(), indent=2))
        print(f"Catalog sync failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
