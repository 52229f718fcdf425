from __future__ import annotations

import logging

from core.errors import ConfigurationError
from core.settings import Settings, get_settings

log = logging.getLogger(__name__)


def validate_config(settings: Settings | None = None) -> None:
    """
    Validate deployment configuration at startup.

    - Base URL: always required (status URLs + local valet keys are absolute)
    - local storage: hard fail without VALET_SIGNING_KEY
    - s3: hard fail without S3_BUCKET
    - minio: hard fail without access/secret key
    - sqs: hard fail without SQS_QUEUE_URL
    """
    s = settings or get_settings()

    if not s.service.base_url:
        raise ConfigurationError("PUBLIC_BASE_URL (or WEBSITE_HOSTNAME) is required to build status URLs")

    provider = s.storage.provider
    if provider == "local":
        if not s.valet.signing_key:
            raise ConfigurationError("VALET_SIGNING_KEY is required when STORAGE_MODE=local")
        log.info("Storage provider: local (dir=%s)", s.storage.local_dir)
    elif provider == "s3":
        if not s.storage.s3_bucket:
            raise ConfigurationError("S3_BUCKET is required when STORAGE_MODE=s3")
        if not s.storage.region:
            log.warning("AWS_REGION not set. boto3 will fall back to its default region resolution.")
        log.info("Storage provider: s3 (bucket=%s prefix=%s)", s.storage.s3_bucket, s.storage.s3_prefix)
    elif provider == "minio":
        if not s.storage.minio_access_key or not s.storage.minio_secret_key:
            raise ConfigurationError("MINIO_ACCESS_KEY / MINIO_SECRET_KEY are required when STORAGE_MODE=minio")
        log.info("Storage provider: minio (endpoint=%s bucket=%s)", s.storage.minio_endpoint, s.storage.minio_bucket)

    if s.queue.provider == "sqs":
        if not s.queue.sqs_queue_url:
            raise ConfigurationError("SQS_QUEUE_URL is required when QUEUE_PROVIDER=sqs")
        log.info("Queue provider: sqs (%s)", s.queue.sqs_queue_url)
    else:
        log.warning("Queue provider: memory. Jobs are not visible outside this process.")

    if s.polling.ceiling_factor < 2:
        log.warning(
            "POLL_BACKOFF_CEILING_FACTOR=%s: Synchronous status checks will time out without rechecking.",
            s.polling.ceiling_factor,
        )
