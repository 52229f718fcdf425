from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from providers.queue import QueueProvider


@dataclass(frozen=True)
class QueuedMessage:
    message_id: str
    body: bytes
    attributes: Dict[str, str]
    enqueued_at: datetime


class InMemoryQueueProvider(QueueProvider):
    """
    Local-only queue.

    Keeps messages in process so a dev processor (or a test) can drain them.
    Nothing survives a restart.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: List[QueuedMessage] = []

    def send_message(self, body: bytes, attributes: Dict[str, str]) -> str:
        msg = QueuedMessage(
            message_id=f"local-{uuid.uuid4()}",
            body=bytes(body or b""),
            attributes={str(k): str(v) for k, v in (attributes or {}).items()},
            enqueued_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._messages.append(msg)
        return msg.message_id

    def drain(self) -> List[QueuedMessage]:
        with self._lock:
            out, self._messages = self._messages, []
        return out

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
