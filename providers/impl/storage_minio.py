from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from minio import Minio
from minio.error import S3Error

from core.errors import ConfigurationError, StoreUnavailable
from providers.storage import StorageProvider

log = logging.getLogger(__name__)

_MISSING_CODES = ("NoSuchKey", "NoSuchObject")


def _strip_http(endpoint: str) -> str:
    # Minio client expects "host:port" (no scheme)
    endpoint = (endpoint or "").strip()
    endpoint = endpoint.replace("http://", "").replace("https://", "")
    endpoint = endpoint.rstrip("/")
    return endpoint


@dataclass
class MinioStorageProvider(StorageProvider):
    """
    MinIO-backed implementation of StorageProvider.

    Presigned GETs are dated at `starts_at` so the store itself rejects
    redemption before the window opens as well as after it closes.
    The bucket is not created here; the processor owns writes.
    """

    endpoint: str
    bucket: str
    access_key: str
    secret_key: str
    secure: bool = False
    region: Optional[str] = None

    def __post_init__(self) -> None:
        host = _strip_http(self.endpoint)
        if not host:
            raise ConfigurationError("MINIO_ENDPOINT is empty or invalid")
        if not self.access_key or not self.secret_key:
            raise ConfigurationError("MINIO_ACCESS_KEY / MINIO_SECRET_KEY not set")

        self._client = Minio(
            host,
            access_key=self.access_key,
            secret_key=self.secret_key,
            secure=bool(self.secure),
            # Known region keeps presigning offline (no GetBucketLocation)
            region=self.region or None,
        )

    @classmethod
    def from_settings(
        cls, endpoint: str, bucket: str, access_key: str, secret_key: str, region: Optional[str] = None
    ) -> "MinioStorageProvider":
        # Derive secure from scheme (best-effort)
        secure = (endpoint or "").lower().startswith("https://")
        return cls(
            endpoint=endpoint,
            bucket=bucket,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )

    def get_object(self, key: str) -> bytes:
        key = (key or "").lstrip("/")
        try:
            resp = self._client.get_object(bucket_name=self.bucket, object_name=key)
            try:
                return resp.read()
            finally:
                resp.close()
                resp.release_conn()
        except S3Error as e:
            # Not found should raise FileNotFoundError to match local provider behavior
            if getattr(e, "code", "") in _MISSING_CODES:
                raise FileNotFoundError(key) from e
            raise StoreUnavailable(f"MinIO get_object failed for {key}: {e}") from e

    def object_exists(self, key: str) -> bool:
        key = (key or "").lstrip("/")
        try:
            self._client.stat_object(bucket_name=self.bucket, object_name=key)
            return True
        except S3Error as e:
            if getattr(e, "code", "") in _MISSING_CODES:
                return False
            log.warning("[MinIO] stat_object failed bucket=%s key=%s code=%s", self.bucket, key, e.code)
            raise StoreUnavailable(f"MinIO stat_object failed for {key}: {e.code}") from e
        except Exception as e:
            # urllib3 connection errors and the like
            log.warning("[MinIO] stat_object failed bucket=%s key=%s err=%s", self.bucket, key, e)
            raise StoreUnavailable(f"MinIO stat_object failed for {key}: {e}") from e

    def presign_url(self, key: str, *, starts_at: datetime, expires_at: datetime) -> str:
        key = (key or "").lstrip("/")
        return self._client.presigned_get_object(
            bucket_name=self.bucket,
            object_name=key,
            expires=expires_at - starts_at,
            request_date=starts_at,
        )
