from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from sum_service import __main__ as entry
from sum_service import main as main_module
from sum_service.config import Settings
from sum_service.main import create_app
from sum_service.observability.metrics import HttpMetrics, MetricsRegistrationError, get_metrics


def test_main_runs_uvicorn_on_configured_port(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    isolated = HttpMetrics(registry=CollectorRegistry())

    monkeypatch.setattr(entry, "create_app", lambda settings: create_app(settings=settings, metrics=isolated))
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    entry.main([])
    assert calls[0]["port"] == 8080
    assert calls[0]["host"] == "0.0.0.0"

    entry.main(["--port", "9001"])
    assert calls[1]["port"] == 9001


def test_main_exits_non_zero_when_metrics_cannot_register(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_create_app(settings):
        raise MetricsRegistrationError("Duplicated timeseries in CollectorRegistry")

    ran: list[bool] = []
    monkeypatch.setattr(entry, "create_app", failing_create_app)
    monkeypatch.setattr(entry.uvicorn, "run", lambda *args, **kwargs: ran.append(True))

    with pytest.raises(SystemExit) as excinfo:
        entry.main([])

    assert excinfo.value.code == 1
    assert ran == []


async def test_raw_uri_label_mode_through_app(registry, counter_value) -> None:
    settings = Settings(METRICS_PATH_LABEL="raw_uri")
    app = create_app(settings=settings, metrics=HttpMetrics(registry=registry))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.post("/sum?trace=1", json={"a": 1, "b": 2})

    assert resp.status_code == 200
    assert counter_value("200", "POST", "/sum?trace=1") == 1
    assert registry.get_sample_value("http_request_duration_ms_count", {"method": "POST", "path": "/sum"}) == 1


async def test_module_level_app_serves_on_process_metrics() -> None:
    assert main_module.app.state.metrics is get_metrics()

    async with AsyncClient(transport=ASGITransport(app=main_module.app), base_url="http://test") as client:
        resp = await client.post("/sum", json={"a": 2, "b": 3})
        metrics_resp = await client.get("/metrics")

    assert resp.status_code == 200
    assert resp.json() == {"result": 5}
    assert 'http_request_counter_total{code="200",method="POST",path="/sum"}' in metrics_resp.text
