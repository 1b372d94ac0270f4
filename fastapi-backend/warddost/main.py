from pathlib import Path
import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.concurrency import run_in_threadpool
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import get_settings
from .database import init_db
from .errors import install_error_handlers
from .observability import (
    get_health_check,
    init_sentry,
    metrics_response,
    setup_logging,
    setup_metrics_middleware,
    setup_timeout_middleware,
)
from .routes import routers
from .storage import get_storage
from .storage_s3 import StorageError

settings = get_settings()

# Setup observability
setup_logging(settings.log_level)
init_sentry(settings.sentry_dsn, settings.environment)

# Application logger
logger = logging.getLogger("warddost")

app = FastAPI(title="Ward Dost API", version=__version__)

# Middleware added last runs first, so the timeout bounds everything below it.
setup_metrics_middleware(app)
setup_timeout_middleware(app, settings.request_timeout_seconds)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins) or ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Idempotency-Key"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=list(settings.allowed_hosts) or ["*"])

install_error_handlers(app)
for router in routers:
    app.include_router(router)

# Serve locally stored complaint photos (development / tests)
if settings.storage_provider != "s3":
    _STORAGE_DIR = Path(settings.local_storage_dir)
    _STORAGE_DIR.mkdir(parents=True, exist_ok=True)
    app.mount("/storage", StaticFiles(directory=str(_STORAGE_DIR)), name="storage")


@app.on_event("startup")
async def on_startup():
    logger.info("Starting Ward Dost API (env=%s, policy=%s)", settings.environment, settings.status_transition_policy)
    await init_db()
    if settings.storage_provider == "s3":
        try:
            await run_in_threadpool(get_storage().ensure_bucket)
        except StorageError as exc:
            # Uploads will fail and be reported per complaint until the bucket is reachable.
            logger.error("Object storage not ready: %s", exc)


@app.get("/health")
def health():
    """Health check endpoint."""
    return get_health_check()


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return metrics_response()
