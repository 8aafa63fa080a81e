"""Main FastAPI application."""
import asyncio
import os
import signal
import structlog
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from chaos_exporter.api import router
from chaos_exporter.config import Settings, settings as default_settings
from chaos_exporter.exporter import build_exporter
from chaos_exporter.log import configure_logging
from chaos_exporter.services.chaos.client import BaseMetricsSource
from chaos_exporter.services.chaos.models import LabelSet

logger = structlog.get_logger()


def _terminate_process() -> None:
    """Stop the server the same way an operator's SIGTERM would."""
    os.kill(os.getpid(), signal.SIGTERM)


def create_app(
    settings: Optional[Settings] = None,
    source: Optional[BaseMetricsSource] = None,
    labels: Optional[LabelSet] = None,
    exit_on_failure: bool = True
) -> FastAPI:
    """
    Create the exporter application.

    Args:
        settings: Settings to use instead of the environment
        source: Metrics source; defaults to the Kubernetes ChaosEngine source
        labels: Label set; defaults to one resolved from the cluster
        exit_on_failure: Terminate the process when the poll loop gives up
    """
    settings = settings or default_settings

    def on_poll_loop_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.critical("Poll loop terminated", error=str(error))
        if exit_on_failure:
            _terminate_process()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("Starting chaos exporter", version=settings.APP_VERSION)

        exporter = build_exporter(settings, source=source, labels=labels)
        app.state.exporter = exporter

        task = asyncio.create_task(exporter.poll_loop.run())
        task.add_done_callback(on_poll_loop_done)
        logger.info("Beginning to serve metrics", port=settings.PORT)

        yield

        exporter.poll_loop.stop()
        await asyncio.wait([task])
        logger.info("Chaos exporter shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Prometheus exporter for LitmusChaos engine results",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint with exporter info."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "engine": settings.CHAOSENGINE,
            "metrics": "/metrics",
            "health": "/health",
        }

    return app


configure_logging(default_settings.LOG_LEVEL, default_settings.LOG_JSON)

app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chaos_exporter.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
    )
