"""
NoteHub Web — Health Check Route
==================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the remote notes API and reports query cache size.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   Notes API reachable (HTTP 200)
    - degraded:  Notes API unreachable (HTTP 200; pages will fail, the
                 process itself is fine and should not be restarted)
"""

import logging
import time

from fastapi import APIRouter, Depends

from notehub import __version__
from notehub.deps import get_notes_api, get_query_cache
from notehub.schemas.note import HealthResponse
from notehub.services.notes_api import NotesAPIClient
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
) -> HealthResponse:
    """
    Check the health of the service and the upstream notes API.

    The ping is a one-item list request; it never raises.
    """
    notes_api_status = "available"
    overall = "healthy"

    if not await api.ping():
        notes_api_status = "unavailable"
        overall = "degraded"
        logger.warning("Health check: notes API unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        notes_api=notes_api_status,
        cached_queries=len(cache),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
