from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..dependencies import get_metrics, get_rotator_service
from ..services.metrics import PrometheusMetrics
from ..services.rotator_service import RotatorService

router = APIRouter(tags=["health"])


@router.get("/live")
async def live():
    """Liveness probe. The process answers, so it is alive."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(rotator_service: RotatorService = Depends(get_rotator_service)):
    """
    Readiness probe.

    HTTP Status Codes:
        200: Scan loop is running
        503: Scan loop is not running (starting up or shutting down)
    """
    if not rotator_service.is_running:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rotator scan loop is not running",
        )
    return {"status": "ready"}


@router.get("/metrics")
async def metrics(prometheus: PrometheusMetrics = Depends(get_metrics)) -> Response:
    """Prometheus exposition of the rotator metrics."""
    return Response(content=prometheus.render(), media_type=prometheus.content_type)
