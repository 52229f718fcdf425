# health/router.py
from __future__ import annotations

import asyncio

from fastapi import APIRouter

from core.deps import ProvidersDep
from core.errors import StoreUnavailable

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    # Keep this super simple and always unauthenticated
    return {"ok": True}


@router.get("/health/store")
async def health_store(providers: ProvidersDep):
    """
    Verifies the object store answers an existence check.
    A missing health key is fine; only an unreachable store is unhealthy.
    """
    s = providers.settings
    try:
        await asyncio.to_thread(providers.storage.object_exists, "__health__.check")
    except StoreUnavailable as e:
        return {
            "ok": False,
            "storeReachable": False,
            "storage": s.storage.provider,
            "queue": s.queue.provider,
            "error": str(e),
        }

    return {
        "ok": True,
        "storeReachable": True,
        "storage": s.storage.provider,
        "queue": s.queue.provider,
    }
