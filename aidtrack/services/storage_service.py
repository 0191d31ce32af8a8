"""Object storage for document bytes.

Two backends, picked by STORAGE_BACKEND:
- s3: any S3-compatible bucket; downloads use presigned GET URLs
- local: files under LOCAL_STORAGE_PATH for development; downloads go
  through the API with a short-lived signed token
"""

import logging
import os
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from aidtrack.core.config import settings
from aidtrack.core.security import create_download_token
from aidtrack.services.storage_client import get_s3_client

logger = logging.getLogger(__name__)

LOCAL_DOWNLOAD_PATH = "/documents/local"


class StorageError(Exception):
    """Storage backend unavailable or failed."""


class StoredObjectNotFoundError(StorageError):
    """No object under this key."""


def _get_storage_backend() -> str:
    return (settings.STORAGE_BACKEND or "local").strip().lower()


def _local_path(storage_key: str) -> Path:
    """Resolve a key under the storage root, refusing anything that escapes it."""
    root = Path(settings.LOCAL_STORAGE_PATH).resolve()
    path = (root / storage_key).resolve()
    if root not in path.parents:
        raise StoredObjectNotFoundError(f"Invalid storage key: {storage_key}")
    return path


def put_object(storage_key: str, content: bytes, content_type: str) -> None:
    """
    Store bytes under `storage_key`.

    Raises:
        StorageError: backend failure
    """
    if _get_storage_backend() == "s3":
        try:
            get_s3_client().put_object(
                Bucket=settings.OBJECT_STORAGE_BUCKET,
                Key=storage_key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to store object: {e}") from e
        return

    path = _local_path(storage_key)
    try:
        os.makedirs(path.parent, exist_ok=True)
        path.write_bytes(content)
    except OSError as e:
        raise StorageError(f"Failed to store object: {e}") from e


def delete_object(storage_key: str) -> None:
    """
    Delete the object under `storage_key`. Missing objects are not an error.

    Raises:
        StorageError: backend failure
    """
    if _get_storage_backend() == "s3":
        try:
            get_s3_client().delete_object(Bucket=settings.OBJECT_STORAGE_BUCKET, Key=storage_key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete object: {e}") from e
        return

    path = _local_path(storage_key)
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise StorageError(f"Failed to delete object: {e}") from e


def read_local_object(storage_key: str) -> bytes:
    """
    Read bytes from the local backend (dev download endpoint).

    Raises:
        StoredObjectNotFoundError: no such file
    """
    path = _local_path(storage_key)
    if not path.is_file():
        raise StoredObjectNotFoundError(f"No object at {storage_key}")
    return path.read_bytes()


def generate_signed_url(storage_key: str, expires_in: int | None = None) -> str:
    """
    Generate a short-lived download URL.

    Raises:
        StorageError: presigning failed
    """
    expires_in = settings.SIGNED_URL_EXPIRY_SECONDS if expires_in is None else expires_in
    if _get_storage_backend() == "s3":
        try:
            return get_s3_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": settings.OBJECT_STORAGE_BUCKET, "Key": storage_key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign download URL: {e}") from e

    token = create_download_token(storage_key, expires_in)
    return f"{LOCAL_DOWNLOAD_PATH}/{token}"


def delete_object_quietly(storage_key: str) -> bool:
    """Best-effort delete used for cleanup paths. Logs failures, returns success."""
    try:
        delete_object(storage_key)
    except StorageError as e:
        logger.warning("Failed to delete stored object %s: %s", storage_key, e)
        return False
    return True
