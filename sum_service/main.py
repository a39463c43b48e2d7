from __future__ import annotations

from fastapi import FastAPI

from sum_service.api.metrics import router as metrics_router
from sum_service.api.sum import router as sum_router
from sum_service.config import Settings, get_settings
from sum_service.observability.logging import configure_logging
from sum_service.observability.metrics import HttpMetrics, get_metrics
from sum_service.observability.middleware import InstrumentationMiddleware


def create_app(settings: Settings | None = None, metrics: HttpMetrics | None = None) -> FastAPI:
    """Build the service. Without ``metrics`` the process-wide registry is used."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if metrics is None:
        metrics = get_metrics(buckets_ms=settings.duration_buckets_ms)

    app = FastAPI(title="Sum Service", version="0.1.0")
    app.state.metrics = metrics
    app.add_middleware(
        InstrumentationMiddleware,
        metrics=metrics,
        path_label=settings.metrics_path_label,
    )
    app.include_router(sum_router)
    app.include_router(metrics_router)
    return app


app = create_app()
