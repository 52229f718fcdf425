# core/valet.py
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from core.errors import ConfigurationError
from core.settings import ValetSettings

READ_PERMISSION = "r"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(ts: datetime) -> str:
    # Second precision, always UTC ("2026-10-18T17:00:00Z")
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_ts(raw: str) -> datetime:
    return datetime.strptime(raw, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DelegatedAccessToken:
    """
    Valet key for one result object.

    Bound to exactly one key, read permission, and the absolute window
    [starts_at, expires_at]. `uri` is redeemed directly against the store.
    """
    key: str
    permission: str
    starts_at: datetime
    expires_at: datetime
    uri: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "permission": self.permission,
            "startsAt": format_ts(self.starts_at),
            "expiresAt": format_ts(self.expires_at),
            "uri": self.uri,
        }


def issue_read_token(
    storage: Any,
    key: str,
    settings: ValetSettings,
    now: Optional[datetime] = None,
) -> DelegatedAccessToken:
    """
    Issue a read-only token for `key` valid from now - skew to now + validity.

    The object does not need to exist yet. Signing is delegated to the
    storage provider (HMAC for local, SigV4 for S3/MinIO); providers raise
    ConfigurationError when they have nothing to sign with.
    """
    key = (key or "").strip().lstrip("/")
    if not key:
        raise ValueError("object key is required")

    now = (now or _utc_now()).replace(microsecond=0)
    starts_at = now - timedelta(seconds=settings.clock_skew_seconds)
    expires_at = now + timedelta(seconds=settings.validity_seconds)

    uri = storage.presign_url(key, starts_at=starts_at, expires_at=expires_at)
    return DelegatedAccessToken(
        key=key,
        permission=READ_PERMISSION,
        starts_at=starts_at,
        expires_at=expires_at,
        uri=uri,
    )


# ---------------------------------------------------------------------
# HMAC signatures (local provider)
# ---------------------------------------------------------------------

def _string_to_sign(key: str, permission: str, start: str, expiry: str) -> bytes:
    return "\n".join([permission, start, expiry, key]).encode("utf-8")


def sign(secret: str, key: str, permission: str, starts_at: datetime, expires_at: datetime) -> Dict[str, str]:
    """Return the query parameters (sp/st/se/sig) that authorize `permission` on `key`."""
    if not secret:
        raise ConfigurationError("VALET_SIGNING_KEY is not configured; cannot issue delegated tokens")

    st = format_ts(starts_at)
    se = format_ts(expires_at)
    sig = hmac.new(
        secret.encode("utf-8"),
        _string_to_sign(key, permission, st, se),
        hashlib.sha256,
    ).hexdigest()
    return {"sp": permission, "st": st, "se": se, "sig": sig}


def verify(
    secret: str,
    key: str,
    params: Dict[str, str],
    required_permission: str = READ_PERMISSION,
    now: Optional[datetime] = None,
) -> bool:
    """True when params carry a valid signature for `key`, grant the permission, and `now` is in window."""
    if not secret:
        return False

    permission = params.get("sp") or ""
    st = params.get("st") or ""
    se = params.get("se") or ""
    sig = params.get("sig") or ""
    if not (permission and st and se and sig):
        return False
    if required_permission not in permission:
        return False

    expected = hmac.new(
        secret.encode("utf-8"),
        _string_to_sign(key, permission, st, se),
        hashlib.sha256,
    ).hexdigest()
    if not hmac.compare_digest(expected, sig):
        return False

    try:
        starts_at = parse_ts(st)
        expires_at = parse_ts(se)
    except ValueError:
        return False

    now = now or _utc_now()
    return starts_at <= now <= expires_at
