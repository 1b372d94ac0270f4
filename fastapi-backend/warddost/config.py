"""
Centralized settings for the Ward Dost backend.

Provides a lightweight wrapper around environment variables (with `.env`
support for local development) so the rest of the codebase can import a single
`get_settings()` helper when configuration is needed. Process environment wins
over the `.env` file so tests can force their own values.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
import os

from dotenv import dotenv_values


TRANSITION_POLICIES = {"permissive", "strict"}


@dataclass(frozen=True)
class Settings:
    """Immutable view of application configuration."""

    # General
    environment: str
    log_level: str
    allowed_hosts: tuple[str, ...]
    cors_origins: tuple[str, ...]
    public_base_url: str

    # Database
    database_url: str

    # Identity (tokens are issued by the external identity provider)
    jwt_secret: Optional[str]
    jwt_algorithm: str
    jwt_audience: Optional[str]
    authority_signup_emails: frozenset[str]

    # Object storage
    storage_provider: str
    local_storage_dir: str
    s3_bucket: str
    s3_region: str
    s3_endpoint: Optional[str]
    s3_use_ssl: bool
    s3_access_key_id: Optional[str]
    s3_secret_access_key: Optional[str]
    s3_public_url_base: Optional[str]
    kms_key_id: Optional[str]
    max_image_bytes: int

    # Request handling
    request_timeout_seconds: float
    status_transition_policy: str
    default_page_size: int
    max_page_size: int

    # Observability
    sentry_dsn: Optional[str]


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_list(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env_lookup(key: str, env: dict[str, str], default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key) or env.get(key) or default


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""

    env_path = Path(__file__).resolve().parents[1] / ".env"
    env_file = dotenv_values(str(env_path)) if env_path.exists() else {}

    policy = (_env_lookup("STATUS_TRANSITION_POLICY", env_file, "permissive") or "").lower()
    if policy not in TRANSITION_POLICIES:
        raise ValueError(
            f"STATUS_TRANSITION_POLICY must be one of {sorted(TRANSITION_POLICIES)}, got {policy!r}"
        )

    default_storage = str(Path(__file__).resolve().parents[1] / "storage")

    return Settings(
        environment=_env_lookup("APP_ENV", env_file, "development"),
        log_level=(_env_lookup("LOG_LEVEL", env_file, "INFO") or "INFO").upper(),
        allowed_hosts=_as_list(_env_lookup("ALLOWED_HOSTS", env_file, "*")),
        cors_origins=_as_list(_env_lookup("CORS_ORIGINS", env_file, "*")),
        public_base_url=(_env_lookup("PUBLIC_BASE_URL", env_file, "http://localhost:8000") or "").rstrip("/"),
        database_url=_env_lookup("DATABASE_URL", env_file, "sqlite+aiosqlite:///./warddost.db"),
        jwt_secret=_env_lookup("JWT_SECRET", env_file),
        jwt_algorithm=_env_lookup("JWT_ALGORITHM", env_file, "HS256"),
        jwt_audience=_env_lookup("JWT_AUDIENCE", env_file),
        authority_signup_emails=frozenset(
            email.lower() for email in _as_list(_env_lookup("AUTHORITY_SIGNUP_EMAILS", env_file))
        ),
        storage_provider=(_env_lookup("STORAGE_PROVIDER", env_file, "local") or "local").lower(),
        local_storage_dir=_env_lookup("LOCAL_STORAGE_DIR", env_file, default_storage),
        s3_bucket=_env_lookup("S3_BUCKET", env_file, "complaint-images"),
        s3_region=_env_lookup("S3_REGION", env_file, "ap-south-1"),
        s3_endpoint=_env_lookup("S3_ENDPOINT", env_file),
        s3_use_ssl=_as_bool(_env_lookup("S3_USE_SSL", env_file, "true"), True),
        s3_access_key_id=_env_lookup("S3_ACCESS_KEY_ID", env_file),
        s3_secret_access_key=_env_lookup("S3_SECRET_ACCESS_KEY", env_file),
        s3_public_url_base=_env_lookup("S3_PUBLIC_URL_BASE", env_file),
        kms_key_id=_env_lookup("KMS_KEY_ID", env_file),
        max_image_bytes=int(_env_lookup("MAX_IMAGE_BYTES", env_file, str(10 * 1024 * 1024))),
        request_timeout_seconds=float(_env_lookup("REQUEST_TIMEOUT_SECONDS", env_file, "15")),
        status_transition_policy=policy,
        default_page_size=int(_env_lookup("DEFAULT_PAGE_SIZE", env_file, "20")),
        max_page_size=int(_env_lookup("MAX_PAGE_SIZE", env_file, "100")),
        sentry_dsn=_env_lookup("SENTRY_DSN", env_file),
    )


__all__ = ["Settings", "get_settings", "TRANSITION_POLICIES"]
