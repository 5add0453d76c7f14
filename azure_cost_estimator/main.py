"""
Main FastAPI application bootstrap.
Configures middleware and includes routers.
"""
import logging

from fastapi import FastAPI

from azure_cost_estimator.core.config import config
from azure_cost_estimator.api.plan import router as plan_router
from azure_cost_estimator.api.catalog import router as catalog_router
from azure_cost_estimator.middleware.request_size_limiter import RequestSizeLimiterMiddleware
from azure_cost_estimator.pricing.rules import default_registry


logger = logging.getLogger(__name__)

# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    raise RuntimeError(f"Configuration error: {error}") from error

logger.info(
    "Pricing %s resources (%s) with catalog store=%s",
    config.AZURE_PROVIDER_NAME,
    ", ".join(default_registry.supported_types()),
    config.CATALOG_STORE
)


app = FastAPI(
    title="Azure Terraform Cost Estimator",
    description="Prices Azure resources in Terraform plans and syncs the Azure retail price catalog",
)

app.add_middleware(RequestSizeLimiterMiddleware)

# Include routers
app.include_router(plan_router)
app.include_router(catalog_router)


@app.get("/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok"}
