import httpx
import pytest
import respx
from httpx import Response

import warddost.client as client_module
from warddost.client import ApiError, RequestTimedOut, ServiceUnavailable, WardDostClient

BASE = "http://test-backend"


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(client_module, "_BACKOFF_FACTOR", 0)


@pytest.mark.asyncio
async def test_sends_bearer_token():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.get("/api/v1/profile/me").mock(return_value=Response(200, json={"user_id": "u1"}))
        async with WardDostClient(BASE, token="tok-123") as api:
            assert (await api.get_my_profile())["user_id"] == "u1"
        assert route.calls.last.request.headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_get_retries_on_5xx_then_succeeds():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.get("/api/v1/wards").mock(
            side_effect=[Response(503, json={"detail": "Persistence error, please retry"}), Response(200, json=[])]
        )
        async with WardDostClient(BASE) as api:
            assert await api.list_wards() == []
        assert route.call_count == 2


@pytest.mark.asyncio
async def test_get_gives_up_after_max_retries():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.get("/api/v1/wards").mock(side_effect=httpx.ConnectError("refused"))
        async with WardDostClient(BASE, max_retries=3) as api:
            with pytest.raises(ServiceUnavailable) as exc:
                await api.list_wards()
        assert route.call_count == 3
        assert "Could not reach" in exc.value.user_message


@pytest.mark.asyncio
async def test_get_does_not_retry_client_errors():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.get("/api/v1/complaints/x").mock(return_value=Response(404, json={"detail": "Complaint not found"}))
        async with WardDostClient(BASE) as api:
            with pytest.raises(ApiError) as exc:
                await api.get_complaint("x")
        assert route.call_count == 1
        assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_mutations_are_never_retried():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.post("/api/v1/complaints").mock(return_value=Response(503, json={"detail": "down"}))
        async with WardDostClient(BASE) as api:
            with pytest.raises(ApiError) as exc:
                await api.file_complaint({"title": "t", "description": "d", "location": "l", "ward_id": "w"})
        assert route.call_count == 1
        assert "trouble" in exc.value.user_message


@pytest.mark.asyncio
async def test_timeout_becomes_typed_error():
    async with respx.mock(base_url=BASE) as respx_mock:
        respx_mock.put("/api/v1/reviews/r1/vote").mock(side_effect=httpx.ReadTimeout("slow"))
        async with WardDostClient(BASE) as api:
            with pytest.raises(RequestTimedOut) as exc:
                await api.vote("r1", True)
        assert "too long" in exc.value.user_message


@pytest.mark.asyncio
async def test_validation_error_carries_field():
    async with respx.mock(base_url=BASE) as respx_mock:
        respx_mock.post("/api/v1/complaints").mock(
            return_value=Response(422, json={"detail": "Select a valid ward", "field": "ward_id"})
        )
        async with WardDostClient(BASE) as api:
            with pytest.raises(ApiError) as exc:
                await api.file_complaint({"title": "t", "description": "d", "location": "l", "ward_id": "zz"})
        assert exc.value.field == "ward_id"
        assert exc.value.user_message == "Select a valid ward"


@pytest.mark.asyncio
async def test_file_complaint_sends_idempotency_key_and_image():
    async with respx.mock(base_url=BASE) as respx_mock:
        route = respx_mock.post("/api/v1/complaints").mock(return_value=Response(201, json={"replayed": False}))
        async with WardDostClient(BASE) as api:
            await api.file_complaint(
                {"title": "t", "description": "d", "location": "l", "ward_id": "w", "latitude": None},
                image=b"img",
                idempotency_key="abc",
            )
        request = route.calls.last.request
        assert request.headers["Idempotency-Key"] == "abc"
        assert b'name="image"' in request.content
        assert b'name="latitude"' not in request.content
