from __future__ import annotations

import argparse

import structlog
import uvicorn

from sum_service.config import get_settings
from sum_service.main import create_app
from sum_service.observability.logging import configure_logging
from sum_service.observability.metrics import MetricsRegistrationError


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Sum service with Prometheus request metrics")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (DEBUG, INFO, ...)")
    args = parser.parse_args(argv)

    settings = settings.model_copy(update={"host": args.host, "port": args.port, "log_level": args.log_level})
    configure_logging(settings.log_level)
    logger = structlog.get_logger("server")

    # Register metrics before binding so a failed registration never leaves a listening socket behind.
    try:
        app = create_app(settings=settings)
    except MetricsRegistrationError as exc:
        logger.error("startup_failed", reason="metrics_registration", error=str(exc))
        raise SystemExit(1) from exc

    logger.info("server_starting", host=settings.host, port=settings.port)
    # uvicorn logs bind errors (e.g. port in use) and exits with status 1 on its own.
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
