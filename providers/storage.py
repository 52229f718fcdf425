from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageProvider(Protocol):
    """
    Read-side object storage abstraction.

    Results are written by the external processor and only read here.
    `object_exists` is the completion signal: it returns False for a missing
    key and raises StoreUnavailable when the store cannot answer.
    """

    def object_exists(self, key: str) -> bool: ...

    def get_object(self, key: str) -> bytes: ...

    def presign_url(self, key: str, *, starts_at: datetime, expires_at: datetime) -> str: ...
