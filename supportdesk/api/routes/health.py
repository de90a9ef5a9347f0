"""Liveness probe."""

from fastapi import APIRouter

from supportdesk.models.api import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse()
