"""Async HTTP client for the Ward Dost API.

Used by scripts and front-end test harnesses. GET requests are retried with
exponential backoff on network errors and 5xx responses; anything that writes
(POST/PATCH/PUT) is sent exactly once, since repeating it could file a second
complaint or flip a vote. Failures surface as ``ClientError`` subclasses that
carry a message suitable for showing to the user.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
_MAX_RETRIES = 3
_BACKOFF_FACTOR = 0.5


class ClientError(Exception):
    """Base class for failures talking to the API."""

    user_message = "Something went wrong. Please try again."


class RequestTimedOut(ClientError):
    user_message = "The server took too long to respond. Please check your connection and retry."


class ServiceUnavailable(ClientError):
    user_message = "Could not reach Ward Dost. Please try again in a moment."


class ApiError(ClientError):
    """The API answered with a 4xx/5xx status."""

    def __init__(self, status_code: int, detail: Any = None, field: Optional[str] = None) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.field = field

    @property
    def user_message(self) -> str:
        if self.status_code == 401:
            return "Your session has expired. Please sign in again."
        if self.status_code == 403:
            return self.detail if isinstance(self.detail, str) else "You are not allowed to do that."
        if self.status_code == 404:
            return "We couldn't find what you were looking for."
        if self.status_code == 504:
            return RequestTimedOut.user_message
        if self.status_code >= 500:
            return "The server is having trouble right now. Please retry shortly."
        if isinstance(self.detail, str):
            return self.detail
        return "Please check the highlighted fields and try again."


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, ApiError) and exc.status_code >= 500


def _raise_for_response(resp: httpx.Response) -> None:
    if resp.status_code < 400:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {"detail": resp.text or resp.reason_phrase}
    if not isinstance(body, dict):
        body = {"detail": body}
    raise ApiError(resp.status_code, body.get("detail"), body.get("field"))


class WardDostClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[httpx.Timeout] = None,
        max_retries: int = _MAX_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout or _DEFAULT_TIMEOUT,
            transport=transport,
        )
        self.max_retries = max(1, max_retries)

    async def __aenter__(self) -> "WardDostClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send_once(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimedOut(str(exc)) from exc
        except httpx.TransportError as exc:
            raise ServiceUnavailable(str(exc)) from exc
        _raise_for_response(resp)
        return resp.json() if resp.content else None

    async def _get(self, path: str, **kwargs) -> Any:
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._client.get(path, **kwargs)
                _raise_for_response(resp)
                return resp.json() if resp.content else None
            except (httpx.TransportError, ApiError) as exc:
                if attempt == self.max_retries or not _is_retryable(exc):
                    logger.warning("GET %s failed (attempt %s/%s): %s", path, attempt, self.max_retries, exc)
                    if isinstance(exc, httpx.TimeoutException):
                        raise RequestTimedOut(str(exc)) from exc
                    if isinstance(exc, httpx.TransportError):
                        raise ServiceUnavailable(str(exc)) from exc
                    raise
                backoff = _BACKOFF_FACTOR * (2 ** (attempt - 1))
                sleep_time = backoff + random.uniform(0, backoff * 0.1)
                logger.info("Retrying GET %s in %.2fs (attempt %s/%s)", path, sleep_time, attempt + 1, self.max_retries)
                await asyncio.sleep(sleep_time)
        raise ServiceUnavailable(f"GET {path} failed")

    # Profile

    async def create_profile(self, full_name: str, role: str = "citizen", **fields) -> Dict[str, Any]:
        return await self._send_once("POST", "/api/v1/profile", json={"full_name": full_name, "role": role, **fields})

    async def get_my_profile(self) -> Dict[str, Any]:
        return await self._get("/api/v1/profile/me")

    # Wards

    async def list_wards(self) -> list:
        return await self._get("/api/v1/wards")

    async def search_wards(self, mode: str, q: str) -> Dict[str, Any]:
        return await self._get("/api/v1/wards/search", params={"mode": mode, "q": q})

    async def get_ward(self, ward_id: str) -> Dict[str, Any]:
        return await self._get(f"/api/v1/wards/{ward_id}")

    async def ward_history(self, ward_id: str) -> list:
        return await self._get(f"/api/v1/wards/{ward_id}/history")

    # Complaints

    async def file_complaint(
        self,
        fields: Dict[str, Any],
        image: Optional[bytes] = None,
        image_name: str = "photo.jpg",
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        files = {"image": (image_name, image)} if image else None
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        data = {key: str(value) for key, value in fields.items() if value is not None}
        return await self._send_once("POST", "/api/v1/complaints", data=data, files=files, headers=headers)

    async def list_complaints(self, **filters) -> Dict[str, Any]:
        params = {key: value for key, value in filters.items() if value is not None}
        return await self._get("/api/v1/complaints", params=params)

    async def get_complaint(self, complaint_id: str) -> Dict[str, Any]:
        return await self._get(f"/api/v1/complaints/{complaint_id}")

    async def attach_image(self, complaint_id: str, image: bytes, image_name: str = "photo.jpg") -> Dict[str, Any]:
        return await self._send_once(
            "POST", f"/api/v1/complaints/{complaint_id}/images", files={"image": (image_name, image)}
        )

    async def update_status(self, complaint_id: str, status: str, authority_notes: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"status": status}
        if authority_notes is not None:
            body["authority_notes"] = authority_notes
        return await self._send_once("PATCH", f"/api/v1/complaints/{complaint_id}/status", json=body)

    async def send_feedback(self, complaint_id: str, **feedback) -> Dict[str, Any]:
        return await self._send_once("PATCH", f"/api/v1/complaints/{complaint_id}/feedback", json=feedback)

    # Reviews

    async def list_reviews(self, complaint_id: str) -> list:
        return await self._get(f"/api/v1/complaints/{complaint_id}/reviews")

    async def add_review(self, complaint_id: str, content: str, rating: int = 5) -> Dict[str, Any]:
        return await self._send_once(
            "POST", f"/api/v1/complaints/{complaint_id}/reviews", json={"content": content, "rating": rating}
        )

    async def vote(self, review_id: str, is_helpful: bool) -> Dict[str, Any]:
        return await self._send_once("PUT", f"/api/v1/reviews/{review_id}/vote", json={"is_helpful": is_helpful})

    # Emergency directory

    async def emergency_contacts(self, ward_id: Optional[str] = None, q: Optional[str] = None) -> list:
        params = {key: value for key, value in {"ward_id": ward_id, "q": q}.items() if value}
        return await self._get("/api/v1/emergency-contacts", params=params)
