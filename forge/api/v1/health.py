import time

from fastapi import APIRouter, Depends

from forge.dependencies import get_studio
from forge.schemas.studio import HealthResponse
from forge.services.studio import Studio

router = APIRouter()

_start_time = time.monotonic()


@router.get("/health")
async def health_check(studio: Studio = Depends(get_studio)) -> HealthResponse:
    """Liveness plus the current run status."""
    return HealthResponse(
        status="ok",
        run_status=studio.controller.status.value,
        provider_configured=studio.has_credentials,
        uptime_seconds=round(time.monotonic() - _start_time, 1),
    )
