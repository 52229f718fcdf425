from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.settings import Settings, get_settings
from providers.storage import StorageProvider
from providers.queue import QueueProvider
from providers.impl.storage_local_files import LocalFilesStorageProvider
from providers.impl.queue_memory import InMemoryQueueProvider


@dataclass(frozen=True)
class Providers:
    """
    Central container for providers.
    """
    settings: Settings
    storage: StorageProvider
    queue: QueueProvider


def build_storage(settings: Settings) -> StorageProvider:
    s = settings.storage
    if s.provider == "s3":
        from providers.impl.storage_s3 import S3StorageProvider

        return S3StorageProvider(bucket=s.s3_bucket, prefix=s.s3_prefix, region=s.region or None)

    if s.provider == "minio":
        from providers.impl.storage_minio import MinioStorageProvider

        return MinioStorageProvider.from_settings(
            endpoint=s.minio_endpoint,
            bucket=s.minio_bucket,
            access_key=s.minio_access_key,
            secret_key=s.minio_secret_key,
            region=s.region or "us-east-1",
        )

    return LocalFilesStorageProvider(
        root_dir=s.local_dir,
        signing_key=settings.valet.signing_key,
        public_base_url=settings.service.base_url,
    )


def build_queue(settings: Settings) -> QueueProvider:
    q = settings.queue
    if q.provider == "sqs":
        from providers.impl.queue_sqs import SQSQueueProvider

        return SQSQueueProvider(queue_url=q.sqs_queue_url, region=q.region or None)
    return InMemoryQueueProvider()


def get_providers(settings: Optional[Settings] = None) -> Providers:
    settings = settings or get_settings()
    return Providers(
        settings=settings,
        storage=build_storage(settings),
        queue=build_queue(settings),
    )
