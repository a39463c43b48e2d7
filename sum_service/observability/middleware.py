from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable, Literal

import structlog
from starlette.datastructures import MutableHeaders

from sum_service.observability.metrics import HttpMetrics


UNMATCHED_PATH_LABEL = "<unmatched>"


class StatusRecorder:
    """Wraps an ASGI ``send`` and remembers the response status.

    Every message is forwarded unchanged apart from the ``X-Request-ID``
    header. The status defaults to 200 and only the first
    ``http.response.start`` sets it.
    """

    def __init__(self, send: Callable[..., Any], request_id: str | None = None) -> None:
        self._send = send
        self._request_id = request_id
        self.status_code: int = 200
        self.started = False

    async def __call__(self, message: dict[str, Any]) -> None:
        if message.get("type") == "http.response.start" and not self.started:
            self.started = True
            self.status_code = int(message.get("status", 200))
            if self._request_id is not None:
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = self._request_id

        await self._send(message)


def _raw_uri(scope: dict[str, Any]) -> str:
    raw_path = scope.get("raw_path")
    if raw_path:
        # Some servers include the query string in raw_path; it is appended from query_string below.
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope.get("path", "")
    query = scope.get("query_string") or b""
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def _route_label(scope: dict[str, Any]) -> str:
    # The router stores the matched route in the (shared) scope once it has dispatched.
    route = scope.get("route")
    template = getattr(route, "path", None)
    if isinstance(template, str):
        return template
    return UNMATCHED_PATH_LABEL


class InstrumentationMiddleware:
    """Adds request_id context, access logs, and Prometheus HTTP metrics."""

    def __init__(
        self,
        app: Callable[..., Any],
        metrics: HttpMetrics,
        path_label: Literal["route", "raw_uri"] = "route",
    ) -> None:
        self.app = app
        self.metrics = metrics
        self.path_label = path_label

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        method = scope.get("method", "")
        path = scope.get("path", "")
        uri = _raw_uri(scope)

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=path,
            method=method,
        )
        logger = structlog.get_logger("access")

        start = perf_counter()
        logger.info("http_request_started", uri=uri)

        recorder = StatusRecorder(send, request_id=request_id)
        try:
            await self.app(scope, receive, recorder)
        except BaseException:
            # Errors and cancellations (client disconnect) before a response started are not successes.
            if not recorder.started:
                recorder.status_code = 500
            raise
        finally:
            elapsed_ms = (perf_counter() - start) * 1000.0

            # Update metrics first so they update even if logging misbehaves.
            if self.path_label == "raw_uri":
                counter_path, duration_path = uri, path
            else:
                counter_path = duration_path = _route_label(scope)

            self.metrics.increment(recorder.status_code, method, counter_path)
            self.metrics.observe(method, duration_path, elapsed_ms)

            logger.info(
                "http_request",
                status_code=recorder.status_code,
                elapsed_ms=round(elapsed_ms, 2),
            )

            structlog.contextvars.clear_contextvars()
