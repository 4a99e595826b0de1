"""
Preach Point Backend — Health Check Route
===========================================

What:  Liveness endpoint for the hosting platform and uptime monitors.
Why:   Confirms the process is serving requests.
How:   Returns a static status document; no dependency checks, so a missing
       LLM credential or an upstream outage never marks the service down.
"""

import logging

from fastapi import APIRouter, Response

from preachpoint.schemas.sermon import HealthResponse
from preachpoint.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

SERVICE_NAME = "Preach Point Backend"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """Static liveness status, open to any origin."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=utc_now_iso(),
    )
