# operations/contracts.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from core.errors import InvalidMode

# =============================================================================
# Modes
# =============================================================================


class OnComplete(str, Enum):
    """How a resolved result is handed back."""

    REDIRECT = "Redirect"
    INLINE = "Stream"


class OnPending(str, Enum):
    """What the status endpoint does while the result is missing."""

    IMMEDIATE = "Accepted"
    BLOCKING = "Synchronous"


# Query-string spellings (case-sensitive). First entry of each is canonical.
_ON_COMPLETE_VALUES = {
    "Redirect": OnComplete.REDIRECT,
    "Stream": OnComplete.INLINE,
    "Inline": OnComplete.INLINE,
}

_ON_PENDING_VALUES = {
    "Accepted": OnPending.IMMEDIATE,
    "Synchronous": OnPending.BLOCKING,
    "Immediate": OnPending.IMMEDIATE,
    "Blocking": OnPending.BLOCKING,
}


def parse_on_complete(raw: Optional[str]) -> OnComplete:
    if raw is None or raw == "":
        return OnComplete.REDIRECT
    try:
        return _ON_COMPLETE_VALUES[raw]
    except KeyError:
        raise InvalidMode("OnComplete", raw, _ON_COMPLETE_VALUES) from None


def parse_on_pending(raw: Optional[str]) -> OnPending:
    if raw is None or raw == "":
        return OnPending.IMMEDIATE
    try:
        return _ON_PENDING_VALUES[raw]
    except KeyError:
        raise InvalidMode("OnPending", raw, _ON_PENDING_VALUES) from None


# =============================================================================
# Responses
# =============================================================================


class OperationHandle(BaseModel):
    """
    Body of the 202 returned by POST /submit.

    `valetKey` can be redeemed against the store directly once the result
    exists, without going through the status endpoint.
    """

    id: str
    status: str = Field(default="accepted")
    statusUrl: str
    valetKey: str
    valetKeyExpiresAt: str
    submittedAt: str
    messageId: Optional[str] = None


class PendingStatus(BaseModel):
    id: str
    status: str = Field(default="pending")
    statusUrl: str
    retryAfterSeconds: int
