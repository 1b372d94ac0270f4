import asyncio
import json
import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from warddost.observability import JSONFormatter, setup_timeout_middleware


@pytest.mark.asyncio
async def test_health_endpoint(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_metrics_endpoint(client, citizen, ward):
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers.get("content-type", "").startswith("text/plain")
    content = resp.text
    assert "http_requests_total" in content
    assert 'endpoint="/api/v1/wards"' in content
    assert "complaint_image_attach_attempts_total" in content


@pytest.mark.asyncio
async def test_timeout_middleware_returns_504():
    app = FastAPI()
    setup_timeout_middleware(app, timeout_seconds=0.05)

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"ok": True}

    @app.get("/fast")
    async def fast():
        return {"ok": True}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        assert (await ac.get("/fast")).status_code == 200
        resp = await ac.get("/slow")
    assert resp.status_code == 504
    assert resp.json()["detail"] == "Request timed out, please retry"


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("warddost.test", logging.INFO, __file__, 10, "hello %s", ("world",), None)
    record.complaint_id = "c-1"
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["complaint_id"] == "c-1"
