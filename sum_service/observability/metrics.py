from __future__ import annotations

from collections.abc import Sequence

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest

from sum_service.config import DEFAULT_DURATION_BUCKETS_MS, get_settings


REQUEST_COUNTER_NAME = "http_request_counter"
REQUEST_DURATION_NAME = "http_request_duration_ms"


class MetricsRegistrationError(RuntimeError):
    """Raised when the HTTP metric series cannot be registered (e.g. registered twice)."""


class HttpMetrics:
    """HTTP request counter + duration histogram bound to one Prometheus registry.

    Prometheus metric objects lock internally, so ``increment``/``observe`` are
    safe to call from any number of concurrent requests.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        buckets_ms: Sequence[float] = DEFAULT_DURATION_BUCKETS_MS,
    ) -> None:
        self.registry = registry if registry is not None else REGISTRY
        self.buckets_ms = tuple(float(b) for b in buckets_ms)
        try:
            self.request_counter = Counter(
                REQUEST_COUNTER_NAME,
                "Number of HTTP requests processed, labeled by status code, method, and path.",
                ["code", "method", "path"],
                registry=self.registry,
            )
            self.request_duration_ms = Histogram(
                REQUEST_DURATION_NAME,
                "Histogram of the duration of HTTP requests processed, in milliseconds.",
                ["method", "path"],
                buckets=self.buckets_ms,
                registry=self.registry,
            )
        except ValueError as exc:
            # prometheus_client reports "Duplicated timeseries in CollectorRegistry" as ValueError.
            raise MetricsRegistrationError(f"failed to register HTTP metrics: {exc}") from exc

    def increment(self, code: int | str, method: str, path: str) -> None:
        self.request_counter.labels(code=str(code), method=method, path=path).inc()

    def observe(self, method: str, path: str, duration_ms: float) -> None:
        self.request_duration_ms.labels(method=method, path=path).observe(float(duration_ms))

    def render(self) -> tuple[bytes, str]:
        """Text exposition of this registry and its content type."""

        return generate_latest(self.registry), CONTENT_TYPE_LATEST


_METRICS: HttpMetrics | None = None


def get_metrics(buckets_ms: Sequence[float] | None = None) -> HttpMetrics:
    """Process-wide metrics on the default Prometheus registry (created once).

    ``buckets_ms`` only applies on first creation; asking for different buckets
    afterwards is a registration conflict.
    """

    global _METRICS
    if buckets_ms is None:
        buckets_ms = get_settings().duration_buckets_ms
    buckets = tuple(float(b) for b in buckets_ms)
    if _METRICS is None:
        _METRICS = HttpMetrics(buckets_ms=buckets)
    elif _METRICS.buckets_ms != buckets:
        raise MetricsRegistrationError(
            f"HTTP metrics already registered with buckets {_METRICS.buckets_ms}, requested {buckets}"
        )
    return _METRICS
