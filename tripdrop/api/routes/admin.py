"""
Admin / observability endpoints
===============================

GET /api/v1/admin/stats   -- delivery counts per status
GET /api/v1/admin/health  -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from tripdrop.api.dependencies import get_delivery_service
from tripdrop.api.middleware import limiter
from tripdrop.api.schemas import HealthResponse, StatusCountsResponse
from tripdrop.config import settings
from tripdrop.services.deliveries import DeliveryService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/stats",
    response_model=StatusCountsResponse,
    summary="Count deliveries per status",
)
@limiter.limit(settings.rate_limit)
async def get_stats(
    request: Request,
    service: DeliveryService = Depends(get_delivery_service),
):
    counts = await service.status_counts()
    return StatusCountsResponse(
        counts={status.value: count for status, count in counts.items()}
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
