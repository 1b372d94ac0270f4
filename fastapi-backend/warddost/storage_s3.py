"""
Thin wrapper over boto3 for the complaint image bucket (AWS S3 or a compatible
service such as MinIO).
"""

from __future__ import annotations

from typing import Optional, Dict, Any
import logging

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings, get_settings

logger = logging.getLogger("warddost.storage_s3")


class StorageError(RuntimeError):
    """Raised when storage operations fail."""


class S3Storage:
    """Uploads objects and builds the public URLs citizens see."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        session_kwargs = {}

        if settings.s3_access_key_id and settings.s3_secret_access_key:
            session_kwargs.update(
                aws_access_key_id=settings.s3_access_key_id,
                aws_secret_access_key=settings.s3_secret_access_key,
            )

        session = boto3.session.Session(**session_kwargs)

        client_kwargs = {
            "service_name": "s3",
            "region_name": settings.s3_region,
            "config": Config(signature_version="s3v4"),
        }
        if settings.s3_endpoint:
            client_kwargs["endpoint_url"] = settings.s3_endpoint
        if settings.s3_use_ssl is False:
            client_kwargs["use_ssl"] = False

        self._client = session.client(**client_kwargs)
        self._bucket = settings.s3_bucket
        self._region = settings.s3_region
        self._endpoint = settings.s3_endpoint
        self._public_url_base = settings.s3_public_url_base
        self._kms_key_id = settings.kms_key_id

    def _apply_object_defaults(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self._kms_key_id:
            params["ServerSideEncryption"] = "aws:kms"
            params["SSEKMSKeyId"] = self._kms_key_id
        if extra:
            params.update(extra)
        return params

    def public_url(self, key: str) -> str:
        if self._public_url_base:
            return f"{self._public_url_base.rstrip('/')}/{key}"
        if self._endpoint:
            return f"{self._endpoint.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        extra = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                **self._apply_object_defaults(extra),
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"put_object failed for {key}: {exc}") from exc

    def delete_object(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"delete_object failed for {key}: {exc}") from exc

    def ensure_bucket(self) -> None:
        """Best-effort check that bucket exists (useful for local MinIO)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except BotoCoreError as exc:
            raise StorageError(f"Bucket {self._bucket} is not reachable: {exc}") from exc
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code")
            if error_code not in {"404", "NoSuchBucket"}:
                raise StorageError(f"Bucket {self._bucket} is not reachable: {exc}") from exc
            logger.info("Bucket %s missing; creating it for dev/local use", self._bucket)
            params = {"Bucket": self._bucket}
            if self._region and self._region != "us-east-1":
                params["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
            try:
                self._client.create_bucket(**params)
            except (ClientError, BotoCoreError) as create_exc:
                raise StorageError(f"Could not create bucket {self._bucket}: {create_exc}") from create_exc


__all__ = ["S3Storage", "StorageError"]
