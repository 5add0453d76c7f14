"""
API routes for Terraform plan pricing.
"""
from typing import Any
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
import logging

from azure_cost_estimator.services.plan_pricer import PlanPricer, PlanParseError


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/plan", tags=["plan"])


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Build the structured error payload returned on fatal failures."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error": error,
            "message": message,
        }
    )


@router.post("/estimate")
async def estimate_plan_cost(request: Request) -> Any:
    """
    Estimate the Azure cost of a Terraform plan.

    The request body is the raw output of ``terraform show -json <planfile>``.

    Args:
        request: FastAPI request object

    Returns:
        JSON estimate with hourly, monthly and yearly cost in USD,
        or a structured error payload with a non-200 status
    """
    body = await request.body()
    if not body:
        return _error_response(400, "invalid_plan", "Request body must contain a Terraform plan")

    try:
        estimate = await PlanPricer().price_plan(body)
    except PlanParseError as error:
        return _error_response(400, "invalid_plan", str(error))
    except Exception as error:
        logger.error(f"Unexpected error pricing plan: {type(error).__name__}: {error}", exc_info=True)
        return _error_response(500, "internal_error", "An unexpected error occurred while pricing the plan")

    return estimate.to_dict()
