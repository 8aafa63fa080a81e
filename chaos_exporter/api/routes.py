"""API routes for metrics exposition and exporter status."""
import structlog

from fastapi import APIRouter, Depends, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST

from chaos_exporter.api.schemas import CountsResponse, HealthResponse, StatusResponse
from chaos_exporter.exporter import Exporter

logger = structlog.get_logger()

router = APIRouter()


def get_exporter(request: Request) -> Exporter:
    """Exporter assembled by the application lifespan."""
    return request.app.state.exporter


# ============== Exposition ==============

@router.get("/metrics", tags=["Metrics"])
def prometheus_metrics(exporter: Exporter = Depends(get_exporter)):
    """Prometheus metrics endpoint."""
    return Response(
        content=exporter.registry.render(),
        media_type=CONTENT_TYPE_LATEST
    )


# ============== Health ==============

@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(exporter: Exporter = Depends(get_exporter)):
    """Health check endpoint."""
    poll_loop = exporter.poll_loop
    return HealthResponse(
        status="healthy" if poll_loop.stats.healthy else "degraded",
        version=exporter.settings.APP_VERSION,
        engine=poll_loop.engine_name,
        namespace=poll_loop.namespace,
        poll_loop_running=not poll_loop.stopped,
    )


@router.get("/api/status", response_model=StatusResponse, tags=["Health"])
async def exporter_status(exporter: Exporter = Depends(get_exporter)):
    """Poll statistics and the experiment series currently exposed."""
    stats = exporter.poll_loop.stats
    counts = exporter.registry.get_aggregates()
    return StatusResponse(
        engine=exporter.poll_loop.engine_name,
        namespace=exporter.poll_loop.namespace,
        labels=exporter.labels.model_dump(),
        polls=stats.polls,
        successes=stats.successes,
        failures=stats.failures,
        consecutive_failures=stats.consecutive_failures,
        last_success_at=stats.last_success_at,
        last_failure_at=stats.last_failure_at,
        last_error=stats.last_error,
        counts=CountsResponse(**counts.model_dump()),
        experiment_series=exporter.registry.series_names(),
    )
