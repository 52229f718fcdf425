# files/router.py
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from core.deps import StorageDep
from core.errors import StoreUnavailable
from providers.impl.storage_local_files import LocalFilesStorageProvider

log = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


# ---------------------------------------------------------------------
# GET /files/{key}  (valet-key redemption for the local provider)
# ---------------------------------------------------------------------
@router.get("/{key:path}")
async def download(key: str, request: Request, storage: StorageDep):
    """
    Serve a result object to the holder of a signed URL.

    Only the local provider routes downloads through this service; S3/MinIO
    valet keys are redeemed against the store directly.
    """
    if not isinstance(storage, LocalFilesStorageProvider):
        raise HTTPException(status_code=404, detail="Direct downloads are served by the object store.")

    params = dict(request.query_params)
    if not storage.verify_download(key, params):
        log.info("Rejected valet key for %s (bad signature or outside window)", key)
        raise HTTPException(status_code=403, detail="Valet key is invalid or expired.")

    try:
        data = await asyncio.to_thread(storage.get_object, key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Object not found.")
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return Response(content=data, media_type="application/octet-stream")
