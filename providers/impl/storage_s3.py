from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import ConfigurationError, StoreUnavailable
from providers.storage import StorageProvider

log = logging.getLogger(__name__)

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")


class S3StorageProvider(StorageProvider):
    """
    Native AWS S3 StorageProvider.

    Uses boto3 credential resolution (IRSA in EKS); the same credentials sign
    presigned GETs, so a missing credential chain means no valet keys.

    SigV4 presigned URLs have no start time: the window is enforced from
    signing time to `expires_at`.
    """

    def __init__(self, bucket: str, prefix: str = "", region: Optional[str] = None, client: Any = None):
        bucket = (bucket or "").strip()
        if not bucket:
            raise ConfigurationError("S3_BUCKET is required for S3 storage provider")

        prefix = (prefix or "").strip()
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"

        self.bucket = bucket
        self.prefix = prefix

        if client is None:
            cfg = Config(
                retries={"max_attempts": 8, "mode": "standard"},
                region_name=(region or "").strip() or None,
            )
            client = boto3.client("s3", config=cfg)
        self.s3 = client

    def _key(self, key: str) -> str:
        key = (key or "").lstrip("/")
        if self.prefix:
            return f"{self.prefix}{key}"
        return key

    def get_object(self, key: str) -> bytes:
        k = self._key(key)
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=k)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise FileNotFoundError(key) from e
            raise StoreUnavailable(f"S3 get_object failed for {k}: {e}") from e
        except BotoCoreError as e:
            raise StoreUnavailable(f"S3 get_object failed for {k}: {e}") from e
        return resp["Body"].read()

    def object_exists(self, key: str) -> bool:
        k = self._key(key)
        try:
            self.s3.head_object(Bucket=self.bucket, Key=k)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            log.warning("[S3] head_object failed bucket=%s key=%s code=%s", self.bucket, k, code)
            raise StoreUnavailable(f"S3 head_object failed for {k}: {code}") from e
        except BotoCoreError as e:
            log.warning("[S3] head_object failed bucket=%s key=%s err=%s", self.bucket, k, e)
            raise StoreUnavailable(f"S3 head_object failed for {k}: {e}") from e

    def presign_url(self, key: str, *, starts_at: datetime, expires_at: datetime) -> str:
        k = self._key(key)
        ttl = int((expires_at - datetime.now(timezone.utc)).total_seconds())
        try:
            return self.s3.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": k},
                ExpiresIn=max(1, ttl),
            )
        except BotoCoreError as e:
            # NoCredentialsError and friends: nothing to sign with
            raise ConfigurationError(f"Cannot presign S3 URL (no usable credentials): {e}") from e
