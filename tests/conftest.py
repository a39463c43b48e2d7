from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from sum_service.config import get_settings
from sum_service.main import create_app
from sum_service.observability.metrics import HttpMetrics


_ENV_VARS = ("HOST", "PORT", "LOG_LEVEL", "METRICS_PATH_LABEL", "DURATION_BUCKETS_MS")


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def counter_value(registry: CollectorRegistry) -> Callable[[str, str, str], float]:
    def _value(code: str, method: str, path: str) -> float:
        value = registry.get_sample_value(
            "http_request_counter_total",
            {"code": code, "method": method, "path": path},
        )
        return value or 0.0

    return _value


@pytest.fixture
def duration_count(registry: CollectorRegistry) -> Callable[[str, str], float]:
    def _value(method: str, path: str) -> float:
        value = registry.get_sample_value(
            "http_request_duration_ms_count",
            {"method": method, "path": path},
        )
        return value or 0.0

    return _value


@pytest.fixture
def metrics(registry: CollectorRegistry) -> HttpMetrics:
    return HttpMetrics(registry=registry)


@pytest.fixture
def app(metrics: HttpMetrics) -> FastAPI:
    return create_app(metrics=metrics)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
