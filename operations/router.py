# operations/router.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from core.deps import AcceptorDep, CoordinatorDep
from core.errors import InvalidMode, StoreUnavailable, SubmissionFailed
from operations.contracts import OperationHandle, PendingStatus, parse_on_complete, parse_on_pending
from operations.ids import is_valid_operation_id
from operations.status import Outcome

log = logging.getLogger(__name__)

router = APIRouter(tags=["operations"])

# Starlette has no named constant for this; nginx's "client closed request"
CLIENT_CLOSED_REQUEST = 499


# ---------------------------------------------------------------------
# POST /submit
# ---------------------------------------------------------------------
@router.post("/submit", status_code=202, response_model=OperationHandle)
async def submit(request: Request, acceptor: AcceptorDep):
    """
    Queue a job and return the operation handle.

    202 + Location: statusUrl. The body also carries a valet key for the
    eventual result object.
    """
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Request body is empty.")

    try:
        handle = await asyncio.to_thread(acceptor.accept, body)
    except SubmissionFailed as exc:
        raise HTTPException(status_code=503, detail=f"Submission failed, retry: {exc}")

    return JSONResponse(
        status_code=202,
        content=handle.model_dump(),
        headers={"Location": handle.statusUrl},
    )


# ---------------------------------------------------------------------
# GET /status/{operation_id}
# ---------------------------------------------------------------------
@router.get("/status/{operation_id}")
async def get_status(
    operation_id: str,
    request: Request,
    coordinator: CoordinatorDep,
    on_complete: Optional[str] = Query(default=None, alias="OnComplete"),
    on_pending: Optional[str] = Query(default=None, alias="OnPending"),
):
    # Modes are validated before the store is touched
    try:
        complete_mode = parse_on_complete(on_complete)
        pending_mode = parse_on_pending(on_pending)
    except InvalidMode as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not is_valid_operation_id(operation_id):
        raise HTTPException(status_code=400, detail="Operation id must be a UUID.")

    try:
        result = await coordinator.check(
            operation_id,
            on_complete=complete_mode,
            on_pending=pending_mode,
            is_disconnected=request.is_disconnected,
        )
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except FileNotFoundError:
        # Deleted between the existence check and the read
        raise HTTPException(status_code=404, detail="Result not found.")

    if result.outcome is Outcome.REDIRECT:
        return RedirectResponse(url=result.redirect_url, status_code=302)

    if result.outcome is Outcome.INLINE:
        return Response(content=result.body, media_type="application/octet-stream")

    if result.outcome is Outcome.PENDING:
        payload = PendingStatus(
            id=result.operation_id,
            statusUrl=result.status_url,
            retryAfterSeconds=result.retry_after_seconds or 0,
        )
        return JSONResponse(
            status_code=202,
            content=payload.model_dump(),
            headers={
                "Location": result.status_url,
                "Retry-After": str(result.retry_after_seconds or 0),
            },
        )

    if result.outcome is Outcome.TIMED_OUT:
        raise HTTPException(status_code=404, detail="Result not available before timeout.")

    # Outcome.ABANDONED: nobody is listening
    return Response(status_code=CLIENT_CLOSED_REQUEST)
