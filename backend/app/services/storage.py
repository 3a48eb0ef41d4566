"""Object storage access for floor-plan images and survey photos.

:class:`ObjectStorage` wraps an S3-compatible client that the application
factory builds once (see :func:`build_s3_client`) and injects; nothing here
caches a client at module level.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, TYPE_CHECKING
from urllib.parse import urlparse, urlunparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from app.core.config import Settings

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:  # pragma: no cover - type checking only
    from botocore.client import BaseClient as S3Client


logger = logging.getLogger("app.storage")

SAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")
IMAGE_MIME_PREFIX = "image/"
MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageUnavailableError(RuntimeError):
    """Raised when the storage backend cannot serve a request."""


class StoredObjectNotFoundError(LookupError):
    """Raised when a referenced object does not exist in its bucket."""


def _filter_kwargs(**kwargs: Any) -> dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


def _error_code(exc: ClientError) -> str | None:
    return exc.response.get("Error", {}).get("Code")


def build_s3_client(settings: Settings) -> S3Client:
    config_kwargs: dict[str, Any] = {}
    if settings.s3_use_path_style:
        config_kwargs["s3"] = {"addressing_style": "path"}

    client_kwargs: dict[str, Any] = {
        "aws_access_key_id": settings.s3_access_key,
        "aws_secret_access_key": settings.s3_secret_key,
        "region_name": settings.s3_region,
        "endpoint_url": settings.s3_endpoint,
    }
    if config_kwargs:
        client_kwargs["config"] = Config(**config_kwargs)

    return boto3.client("s3", **_filter_kwargs(**client_kwargs))


def sanitize_filename(filename: str) -> str:
    base = os.path.basename(filename.strip()) or "file"
    name, ext = os.path.splitext(base)
    safe_name = SAFE_CHARS_RE.sub("-", name).strip("-._") or "file"
    safe_ext = "".join(ch for ch in ext if ch.isalnum() or ch in {".", "_", "-"})
    candidate = safe_name
    if safe_ext:
        candidate = f"{safe_name}{safe_ext}" if safe_ext.startswith(".") else f"{safe_name}.{safe_ext}"
    return candidate[:255] or "file"


def build_floor_plan_key(
    building: str,
    floor: str,
    filename: str,
    *,
    version: int,
    timestamp_ms: int,
) -> str:
    """Key floor plans by building, floor, version and upload time.

    ``main-building-first-v2-1700000000000.jpg``
    """

    _, ext = os.path.splitext(sanitize_filename(filename))
    building_slug = SAFE_CHARS_RE.sub("-", building.strip().lower()).strip("-._") or "building"
    floor_slug = SAFE_CHARS_RE.sub("-", floor.strip().lower()).strip("-._") or "floor"
    return f"{building_slug}-{floor_slug}-v{version}-{timestamp_ms}{ext.lower()}"


def is_image_mime(mime: str | None) -> bool:
    if not mime:
        return False
    return mime.strip().lower().startswith(IMAGE_MIME_PREFIX)


def split_file_path(file_path: str, default_bucket: str) -> tuple[str, str]:
    """Split ``bucket/key`` references, tolerating bare keys."""

    bucket, _, key = file_path.partition("/")
    if key and bucket == default_bucket:
        return bucket, key
    return default_bucket, file_path


class ObjectStorage:
    def __init__(self, client: S3Client, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    def ensure_bucket_exists(self, bucket: str) -> None:
        try:
            self.client.head_bucket(Bucket=bucket)
            return
        except ClientError as exc:
            if _error_code(exc) not in {"404", "NoSuchBucket", "NotFound"}:
                raise StorageUnavailableError("Unable to verify storage bucket") from exc

        create_kwargs: dict[str, Any] = {"Bucket": bucket}
        region = self.settings.s3_region
        if region and region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self.client.create_bucket(**create_kwargs)
        except ClientError as exc:
            if _error_code(exc) in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                return
            raise StorageUnavailableError("Unable to create storage bucket") from exc
        logger.info("Created storage bucket %s", bucket)

    def put_object(self, bucket: str, key: str, body: bytes, *, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Unable to store object %s/%s", bucket, key)
            raise StorageUnavailableError("Storage backend error") from exc

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in MISSING_OBJECT_CODES:
                raise StoredObjectNotFoundError(key) from exc
            raise StorageUnavailableError("Unable to delete stored object") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError("Unable to delete stored object") from exc

    def presigned_get(self, bucket: str, key: str, *, expires_in: int | None = None) -> str:
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in or self.settings.signed_url_ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError("Unable to sign storage URL") from exc
        return self.rewrite_public_url(url)

    def public_url(self, bucket: str, key: str) -> str:
        base = self.settings.s3_public_endpoint or self.settings.s3_endpoint
        if base:
            return f"{base.rstrip('/')}/{bucket}/{key}"
        region = self.settings.s3_region or "us-east-1"
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    def floor_plan_url(self, key: str) -> str:
        bucket = self.settings.floor_plans_bucket
        if self.settings.floor_plans_public:
            return self.public_url(bucket, key)
        return self.presigned_get(bucket, key)

    def rewrite_public_url(self, url: str) -> str:
        public_endpoint = self.settings.s3_public_endpoint
        if not public_endpoint:
            return url

        public_parts = urlparse(public_endpoint)
        if not public_parts.scheme or not public_parts.netloc:
            logger.warning("Incomplete S3_PUBLIC_ENDPOINT value: %s", public_endpoint)
            return url

        url_parts = urlparse(url)
        path = url_parts.path
        public_path = public_parts.path.rstrip("/")
        if public_path:
            suffix = path.lstrip("/")
            path = f"{public_path}/{suffix}" if suffix else public_path
            if not path.startswith("/"):
                path = f"/{path}"

        return urlunparse(
            url_parts._replace(
                scheme=public_parts.scheme,
                netloc=public_parts.netloc,
                path=path,
            )
        )


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


__all__ = [
    "ObjectStorage",
    "S3Client",
    "StorageUnavailableError",
    "StoredObjectNotFoundError",
    "build_floor_plan_key",
    "build_s3_client",
    "get_storage",
    "is_image_mime",
    "sanitize_filename",
    "split_file_path",
]
