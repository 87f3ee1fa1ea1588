import time

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response

from linkmeta.config import settings
from linkmeta.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get(
    "/health",
    summary="Liveness check",
    description="Returns HTTP 200 while the process is serving. The service has no database, cache or queue behind it, so liveness is the whole health story.",
)
async def liveness():
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "uptimeSeconds": round(time.monotonic() - _STARTED_AT, 1),
    }


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Unfurl outcomes, upstream fetch latency and manifest fetch results in Prometheus exposition format. HTTP 404 when METRICS_ENABLED is off.",
)
async def metrics():
    if not settings.METRICS_ENABLED:
        return PlainTextResponse("Metrics disabled", status_code=404)
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
