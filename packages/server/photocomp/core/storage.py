"""
S3 blob storage: uploads, presigned GET URLs and deletes.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
import structlog
from botocore.client import BaseClient
from botocore.config import Config
from starlette.concurrency import run_in_threadpool

from photocomp.core.config import Settings

log = structlog.get_logger()


def build_s3_client(settings: Settings) -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    endpoint_url = settings.s3_endpoint_url.rstrip("/") if settings.s3_endpoint_url else None
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=endpoint_url,
        # Path-style addressing keeps MinIO / LocalStack working
        config=Config(s3={"addressing_style": "path"}) if endpoint_url else None,
    )


def key_from_url(url: str, bucket: Optional[str] = None) -> Optional[str]:
    """Recover an object key from a stored (possibly expired) object URL.

    Path-style URLs carry the bucket as the first path segment; pass
    ``bucket`` to strip it.
    """
    if not url:
        return None
    path = unquote(urlparse(url).path).lstrip("/")
    if bucket and path.startswith(f"{bucket}/"):
        path = path[len(bucket) + 1:]
    return path or None


class BlobStore:
    """Thin async wrapper over one bucket."""

    def __init__(self, client: BaseClient, bucket: str, expires_seconds: int = 3600):
        self._client = client
        self.bucket = bucket
        self.expires_seconds = expires_seconds

    async def upload(self, key: str, body: bytes, content_type: str) -> str:
        await run_in_threadpool(
            self._client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )
        log.debug("s3.uploaded", key=key, size=len(body))
        return key

    async def presign(self, key: str, *, download_filename: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if download_filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_filename}"'
        return await run_in_threadpool(
            self._client.generate_presigned_url,
            "get_object",
            Params=params,
            ExpiresIn=self.expires_seconds,
        )

    async def delete(self, key: str) -> None:
        await run_in_threadpool(self._client.delete_object, Bucket=self.bucket, Key=key)
        log.debug("s3.deleted", key=key)
