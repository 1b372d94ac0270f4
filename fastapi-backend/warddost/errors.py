"""Domain exceptions raised by the service modules.

Route handlers never build HTTP errors for these by hand; `install_error_handlers`
maps each class onto a status code and a JSON body of the form
``{"detail": ..., "field": ...}``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("warddost.errors")


class WardDostError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 400

    def __init__(self, detail: str, field: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.field = field


class ValidationFailed(WardDostError):
    """A required field is missing or a value is malformed."""

    status_code = 422


class NotFound(WardDostError):
    status_code = 404


class PermissionDenied(WardDostError):
    status_code = 403


class Conflict(WardDostError):
    """The request is well formed but clashes with the current state."""

    status_code = 409


def _body(detail: str, field: Optional[str] = None) -> dict:
    body = {"detail": detail}
    if field:
        body["field"] = field
    return body


def install_error_handlers(app: FastAPI) -> None:
    # Imported here so the storage backends stay optional at import time.
    from .photo_utils import ImageValidationError
    from .storage_s3 import StorageError

    @app.exception_handler(WardDostError)
    async def _domain_error(request: Request, exc: WardDostError):
        return JSONResponse(status_code=exc.status_code, content=_body(exc.detail, exc.field))

    @app.exception_handler(ImageValidationError)
    async def _image_error(request: Request, exc: ImageValidationError):
        return JSONResponse(status_code=exc.status_code, content=_body(str(exc), "image"))

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=502, content=_body("Photo storage is unavailable, please retry"))

    @app.exception_handler(SQLAlchemyError)
    async def _persistence_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Persistence failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=503, content=_body("Persistence error, please retry"))


__all__ = [
    "WardDostError",
    "ValidationFailed",
    "NotFound",
    "PermissionDenied",
    "Conflict",
    "install_error_handlers",
]
