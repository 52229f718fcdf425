from __future__ import annotations

import os
import stat
from datetime import datetime
from typing import Dict, Optional
from urllib.parse import quote, urlencode

from core import valet
from core.errors import StoreUnavailable
from providers.storage import StorageProvider


class LocalFilesStorageProvider(StorageProvider):
    """
    Local filesystem storage provider.

    Delegated URLs point back at this service (`/files/{key}?sp=..&st=..&se=..&sig=..`)
    and are checked by `verify_download` before any bytes are served.
    """

    def __init__(self, root_dir: str, signing_key: str, public_base_url: str) -> None:
        self.root_dir = os.path.abspath(root_dir or "./data")
        self.signing_key = signing_key or ""
        self.public_base_url = (public_base_url or "").rstrip("/")
        os.makedirs(self.root_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = key.replace("..", "").lstrip("/").replace("/", os.sep)
        return os.path.join(self.root_dir, safe)

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        # Write-then-rename so readers never observe a torn object
        tmp = f"{path}.tmp-{os.getpid()}"
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, path)

    def get_object(self, key: str) -> bytes:
        path = self._path(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise StoreUnavailable(f"local store unreadable: {exc}") from exc

    def object_exists(self, key: str) -> bool:
        # A missing or replaced root means the store is gone, not that the result is pending
        if not os.path.isdir(self.root_dir):
            raise StoreUnavailable(f"local store root missing or not a directory: {self.root_dir}")
        try:
            st = os.stat(self._path(key))
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreUnavailable(f"local store unreadable: {exc}") from exc
        return stat.S_ISREG(st.st_mode)

    def presign_url(self, key: str, *, starts_at: datetime, expires_at: datetime) -> str:
        params = valet.sign(self.signing_key, key, valet.READ_PERMISSION, starts_at, expires_at)
        return f"{self.public_base_url}/files/{quote(key)}?{urlencode(params)}"

    def verify_download(self, key: str, params: Dict[str, str], now: Optional[datetime] = None) -> bool:
        return valet.verify(self.signing_key, key, params, valet.READ_PERMISSION, now=now)
