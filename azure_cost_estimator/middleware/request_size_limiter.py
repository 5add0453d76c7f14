"""
Request size limiting middleware for FastAPI.
Protects the plan pricing endpoint from oversized plans.
"""
from typing import Any, Optional, Set
import json
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Size limit constants
MAX_REQUEST_BODY_SIZE = 1_048_576  # 1 MB in bytes
MAX_PLAN_RESOURCE_CHANGES = 2000

# Endpoints that require size limiting
PROTECTED_ENDPOINTS: Set[str] = {
    "/api/plan/estimate",
}


def _too_large(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "error": "request_too_large",
            "message": message,
        }
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request size limiting.

    Applies size limits only to configured endpoints.
    Other routes pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: ASGIApp):
        """
        Process request and apply size limits if applicable.

        Args:
            request: FastAPI request object
            call_next: Next middleware or route handler

        Returns:
            Response object
        """
        path = request.url.path
        if path not in PROTECTED_ENDPOINTS:
            return await call_next(request)

        # Reject early on a declared oversized body
        content_length = request.headers.get("Content-Length")
        if content_length:
            try:
                if int(content_length) > MAX_REQUEST_BODY_SIZE:
                    logger.info(
                        f"Request body size exceeded for {path}: "
                        f"{content_length} bytes (limit: {MAX_REQUEST_BODY_SIZE})"
                    )
                    return _too_large("Request body size exceeds allowed limit of 1 MB.")
            except ValueError:
                # Invalid Content-Length header, measure the body instead
                pass

        body_bytes = await request.body()
        if len(body_bytes) > MAX_REQUEST_BODY_SIZE:
            logger.info(
                f"Request body size exceeded for {path}: "
                f"{len(body_bytes)} bytes (limit: {MAX_REQUEST_BODY_SIZE})"
            )
            return _too_large("Request body size exceeds allowed limit of 1 MB.")

        if body_bytes:
            try:
                body_json = json.loads(body_bytes.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                # Malformed plans are reported by the route handler
                body_json = None

            validation_error = self._validate_plan(body_json)
            if validation_error:
                logger.info(f"Payload validation failed for {path}: {validation_error}")
                return _too_large(validation_error)

        # Starlette requires the body to be restored for downstream readers
        async def receive():
            return {"type": "http.request", "body": body_bytes}

        request._receive = receive
        return await call_next(request)

    def _validate_plan(self, body_json: Any) -> Optional[str]:
        """
        Validate the number of resource changes in a plan.

        Args:
            body_json: Parsed JSON body (None if it did not parse)

        Returns:
            Error message if validation fails, None if valid
        """
        if not isinstance(body_json, dict):
            return None

        resource_changes = body_json.get("resource_changes")
        if isinstance(resource_changes, list) and len(resource_changes) > MAX_PLAN_RESOURCE_CHANGES:
            return (
                f"Plan too large: {len(resource_changes)} resource changes "
                f"(limit: {MAX_PLAN_RESOURCE_CHANGES})"
            )

        return None
