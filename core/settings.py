from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ServiceSettings:
    # Absolute base for status URLs and local valet-key URLs, e.g. "https://ops.example.com"
    base_url: str
    log_level: str = "INFO"


@dataclass(frozen=True)
class StorageSettings:
    """
    Storage provider configuration.

    provider:
      - "local"  -> LocalFilesStorageProvider (HMAC-signed /files URLs)
      - "s3"     -> S3StorageProvider
      - "minio"  -> MinioStorageProvider
    """
    provider: str

    # Local
    local_dir: str = "./data"

    # S3
    s3_bucket: str = ""
    s3_prefix: str = ""
    region: str = ""

    # MinIO
    minio_endpoint: str = "http://minio:9000"
    minio_bucket: str = "results"
    minio_access_key: str = ""
    minio_secret_key: str = ""


@dataclass(frozen=True)
class QueueSettings:
    provider: str  # memory | sqs
    sqs_queue_url: str = ""
    region: str = ""


@dataclass(frozen=True)
class ValetSettings:
    # HMAC secret for the local provider. S3/MinIO sign with their own credentials.
    signing_key: str = ""
    clock_skew_seconds: int = 300
    validity_seconds: int = 600


@dataclass(frozen=True)
class PollingSettings:
    initial_backoff_ms: int = 250
    ceiling_factor: int = 64
    retry_after_seconds: int = 5

    @property
    def ceiling_ms(self) -> int:
        return self.initial_backoff_ms * self.ceiling_factor


@dataclass(frozen=True)
class Settings:
    service: ServiceSettings
    storage: StorageSettings
    queue: QueueSettings
    valet: ValetSettings
    polling: PollingSettings


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _load_service_settings() -> ServiceSettings:
    base_url = (_env("PUBLIC_BASE_URL", "") or "").strip().rstrip("/")
    if not base_url:
        # Hosted deployments expose only the hostname
        hostname = (_env("WEBSITE_HOSTNAME", "") or "").strip()
        if hostname:
            base_url = f"https://{hostname}"

    log_level = (_env("LOG_LEVEL", "") or "INFO").strip().upper()
    return ServiceSettings(base_url=base_url, log_level=log_level)


def _normalize_storage_provider(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("s3", "aws"):
        return "s3"
    if v in ("minio", "object_store", "objectstore"):
        return "minio"
    if v in ("local", "file", "files", "filesystem"):
        return "local"
    return "local"


def _region() -> str:
    return (_env("AWS_REGION", "") or _env("AWS_DEFAULT_REGION", "") or "").strip()


def _load_storage_settings() -> StorageSettings:
    """
    Storage precedence:
      1) STORAGE_MODE (deployment/runtime truth)
      2) STORAGE_PROVIDER (legacy override)
      3) default local
    """
    raw_mode = (_env("STORAGE_MODE", "") or "").strip()
    raw_provider = (_env("STORAGE_PROVIDER", "") or "").strip()
    provider = _normalize_storage_provider(raw_mode or raw_provider or "local")

    return StorageSettings(
        provider=provider,
        local_dir=(_env("STORAGE_LOCAL_DIR", "") or "./data").strip(),
        s3_bucket=(_env("S3_BUCKET", "") or "").strip(),
        s3_prefix=(_env("S3_PREFIX", "") or "").strip(),
        region=_region(),
        minio_endpoint=(_env("MINIO_ENDPOINT", "") or "http://minio:9000").strip().rstrip("/"),
        minio_bucket=(_env("MINIO_BUCKET", "") or "results").strip(),
        minio_access_key=(_env("MINIO_ACCESS_KEY", "") or "").strip(),
        minio_secret_key=(_env("MINIO_SECRET_KEY", "") or "").strip(),
    )


def _load_queue_settings() -> QueueSettings:
    provider = (_env("QUEUE_PROVIDER", "") or "memory").strip().lower()
    if provider not in ("memory", "sqs"):
        provider = "memory"
    return QueueSettings(
        provider=provider,
        sqs_queue_url=(_env("SQS_QUEUE_URL", "") or "").strip(),
        region=_region(),
    )


def _load_valet_settings() -> ValetSettings:
    skew = _env_int("VALET_CLOCK_SKEW_SECONDS", 300)
    validity = _env_int("VALET_VALIDITY_SECONDS", 600)
    return ValetSettings(
        signing_key=(_env("VALET_SIGNING_KEY", "") or "").strip(),
        clock_skew_seconds=max(0, skew),
        validity_seconds=max(1, validity),
    )


def _load_polling_settings() -> PollingSettings:
    initial = _env_int("POLL_INITIAL_BACKOFF_MS", 250)
    factor = _env_int("POLL_BACKOFF_CEILING_FACTOR", 64)
    retry_after = _env_float("POLL_RETRY_AFTER_SECONDS", 5.0)
    return PollingSettings(
        initial_backoff_ms=max(1, initial),
        ceiling_factor=max(1, factor),
        retry_after_seconds=max(0, int(retry_after)),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        service=_load_service_settings(),
        storage=_load_storage_settings(),
        queue=_load_queue_settings(),
        valet=_load_valet_settings(),
        polling=_load_polling_settings(),
    )
