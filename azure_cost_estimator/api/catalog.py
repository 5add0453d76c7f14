"""
API routes for the Azure retail price catalog.
"""
from typing import Any, Dict
from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
import logging

from azure_cost_estimator.domain.catalog_models import StoredGroup
from azure_cost_estimator.pricing.retail_price_feed import FeedParseError, FeedTransportError
from azure_cost_estimator.services.catalog_sync import CatalogSynchronizer, CatalogSyncError
from azure_cost_estimator.storage.price_dump import create_price_dump_uploader
from azure_cost_estimator.storage.price_store import PersistenceError, get_price_store


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.post("/sync")
async def sync_catalog() -> Any:
    """
    Run one catalog synchronization against the retail price feed.

    Returns:
        Sync summary. A failed feed fetch answers 502; persistence failures
        answer 500 with the summary and status "partial".
    """
    synchronizer = CatalogSynchronizer(
        store=get_price_store(),
        dump_uploader=create_price_dump_uploader()
    )
    try:
        result = await synchronizer.sync()
    except (FeedTransportError, FeedParseError) as error:
        raise HTTPException(
            status_code=502,
            detail=f"Retail price feed unavailable: {str(error)}"
        ) from error
    except CatalogSyncError as error:
        return JSONResponse(
            status_code=500,
            content={**error.result.to_dict(), "message": str(error)}
        )

    return result.to_dict()


@router.get("/groups/{catalog_id:path}")
async def get_catalog_group(catalog_id: str) -> Dict[str, Any]:
    """
    Retrieve the stored group for a catalog id.

    Returns 404 if nothing is stored under the id.
    """
    try:
        entries = get_price_store().get(catalog_id)
    except PersistenceError as error:
        logger.error(f"Failed to read catalog group {catalog_id}: {error}")
        raise HTTPException(
            status_code=503,
            detail="Catalog store unavailable"
        ) from error

    if entries is None:
        raise HTTPException(
            status_code=404,
            detail="Catalog group not found"
        )

    return {
        "status": "ok",
        "group": StoredGroup(catalog_id=catalog_id, entries=entries).to_dict(),
    }
