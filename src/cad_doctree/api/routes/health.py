from fastapi import APIRouter, Depends, Response, status

from cad_doctree.api.dependencies import get_session
from cad_doctree.api.schemas import HealthResponse, ReadinessResponse
from cad_doctree.core.session import CadSession

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe: the process is up."""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    session: CadSession = Depends(get_session),
) -> ReadinessResponse:
    """Readiness probe: the CAD host answers a ping."""
    if await session.host.ping():
        return ReadinessResponse(status="ok", host="up")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", host="down")
