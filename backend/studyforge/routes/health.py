"""
StudyForge Backend — Health Check Route
=========================================

What:  GET /health for monitoring and container probes.
How:   Reports whether each provider has usable credentials. It does not call
       the providers: a probe every few seconds must not spend API quota.

Status levels:
    healthy:   the default and vision providers are configured
    degraded:  at least one of them is not; generation calls will fail with
               ConfigurationError until the key is set
"""

import time

from fastapi import APIRouter, Depends

from studyforge import __version__
from studyforge.config import Settings
from studyforge.dependencies import get_generation_service, get_settings
from studyforge.schemas.generation import HealthResponse
from studyforge.services.generation_service import StudyGenerationService

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    service: StudyGenerationService = Depends(get_generation_service),
    config: Settings = Depends(get_settings),
) -> HealthResponse:
    providers = service.provider_status()
    in_use = {config.default_provider, config.vision_provider}
    ready = all(providers.get(name) == "configured" for name in in_use)

    return HealthResponse(
        status="healthy" if ready else "degraded",
        version=__version__,
        providers=providers,
        default_provider=config.default_provider,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
