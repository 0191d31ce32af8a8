"""Helpers for creating storage clients."""

from __future__ import annotations

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from aidtrack.core.config import settings


def _normalize_endpoint(endpoint_url: str | None) -> str | None:
    if endpoint_url:
        return endpoint_url.rstrip("/")
    return None


def _build_s3_config() -> Config | None:
    if settings.OBJECT_STORAGE_FORCE_PATH_STYLE:
        # MinIO and most self-hosted S3-compatible servers
        return Config(s3={"addressing_style": "path"}, signature_version="s3v4")
    return Config(signature_version="s3v4")


def get_s3_client() -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    return boto3.client(
        "s3",
        region_name=settings.OBJECT_STORAGE_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=_normalize_endpoint(settings.OBJECT_STORAGE_ENDPOINT),
        config=_build_s3_config(),
    )
