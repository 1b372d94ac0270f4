import io
import os
import sys
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlmodel import SQLModel

# Ensure we can import the backend package located under fastapi-backend/
REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_PATH = REPO_ROOT / "fastapi-backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

# Set environment variables BEFORE importing app modules; settings are cached
# on first use and the JWT secret is required at import time.
_TMP = Path(tempfile.mkdtemp(prefix="warddost-tests-"))
os.environ["JWT_SECRET"] = "test-secret-key-for-pytest-only-12345"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["LOCAL_STORAGE_DIR"] = str(_TMP / "storage")
os.environ["PUBLIC_BASE_URL"] = "http://test"
os.environ["APP_ENV"] = "test"
os.environ.pop("JWT_AUDIENCE", None)
os.environ.pop("AUTHORITY_SIGNUP_EMAILS", None)
os.environ.pop("STATUS_TRANSITION_POLICY", None)
os.environ.pop("SENTRY_DSN", None)

import warddost.database as database  # noqa: E402
import warddost.auth as auth  # noqa: E402
from warddost.main import app  # noqa: E402


def png_bytes(size=(16, 16), color=(30, 120, 200)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest_asyncio.fixture(scope="function")
async def client():
    """In-process API client over a freshly created schema."""
    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


def bearer(user_id: str, email: str = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {auth.create_access_token(user_id, email=email)}"}


@pytest_asyncio.fixture(scope="function")
async def make_user(client) -> Callable[..., Awaitable[Dict[str, str]]]:
    """Return a factory that signs a user up and returns their auth headers."""

    async def _create(user_id: str, role: str = "citizen", email: str = None) -> Dict[str, str]:
        headers = bearer(user_id, email=email)
        resp = await client.post(
            "/api/v1/profile",
            json={"full_name": user_id.title(), "email": email or f"{user_id}@example.com", "role": role},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return headers

    return _create


@pytest_asyncio.fixture(scope="function")
async def citizen(make_user):
    return await make_user("citizen-1")


@pytest_asyncio.fixture(scope="function")
async def authority(make_user):
    return await make_user("officer-1", role="authority")


@pytest_asyncio.fixture(scope="function")
async def ward(client, authority):
    resp = await client.post(
        "/api/v1/wards",
        json={
            "name": "Koramangala",
            "pincode": "560034",
            "basin": "Koramangala-Challaghatta Valley",
            "avg_rainfall_mm": 120,
            "drain_capacity_mm": 80,
            "risk_level": "high",
        },
        headers=authority,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest_asyncio.fixture(scope="function")
async def complaint(client, citizen, ward):
    resp = await client.post(
        "/api/v1/complaints",
        data={
            "title": "Drain overflowing",
            "description": "Water above ankle level after 20 minutes of rain",
            "location": "80 Feet Road, near the bus stop",
            "ward_id": ward["id"],
        },
        headers=citizen,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["complaint"]
