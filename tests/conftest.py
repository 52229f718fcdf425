import os
import sys
from datetime import datetime
from typing import Dict, List, Optional

import pytest

# Repo root is the import root (core/, providers/, operations/ ...)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.errors import StoreUnavailable
from core.settings import (
    PollingSettings,
    QueueSettings,
    ServiceSettings,
    Settings,
    StorageSettings,
    ValetSettings,
)

BASE_URL = "http://testserver"
SIGNING_KEY = "test-signing-key"


def make_settings(tmp_dir: str = "./data", **polling) -> Settings:
    return Settings(
        service=ServiceSettings(base_url=BASE_URL),
        storage=StorageSettings(provider="local", local_dir=tmp_dir),
        queue=QueueSettings(provider="memory"),
        valet=ValetSettings(signing_key=SIGNING_KEY),
        polling=PollingSettings(**polling),
    )


class FakeStorage:
    """
    Dict-backed store.

    `appears_at_ms` makes a key exist only once the fake clock has advanced
    that far; `failures` makes the next N existence checks raise StoreUnavailable.
    """

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.appears_at_ms: Dict[str, int] = {}
        self.clock_ms = 0
        self.failures = 0
        self.exists_calls: List[str] = []
        self.presigned: List[str] = []

    def put_object(self, key: str, data: bytes, content_type: str = "application/octet-stream", metadata=None) -> None:
        self.objects[key] = data

    def get_object(self, key: str) -> bytes:
        if not self.object_exists(key):
            raise FileNotFoundError(key)
        return self.objects[key]

    def object_exists(self, key: str) -> bool:
        self.exists_calls.append(key)
        if self.failures > 0:
            self.failures -= 1
            raise StoreUnavailable("store offline")
        if key not in self.objects:
            return False
        return self.clock_ms >= self.appears_at_ms.get(key, 0)

    def presign_url(self, key: str, *, starts_at: datetime, expires_at: datetime) -> str:
        self.presigned.append(key)
        return f"https://store.test/{key}?st={starts_at:%Y%m%dT%H%M%S}&se={expires_at:%Y%m%dT%H%M%S}"


class FakeSleep:
    """Records requested delays and advances the FakeStorage clock instead of sleeping."""

    def __init__(self, storage: Optional[FakeStorage] = None) -> None:
        self.storage = storage
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.storage is not None:
            self.storage.clock_ms += int(round(seconds * 1000))


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_sleep(fake_storage):
    return FakeSleep(fake_storage)
