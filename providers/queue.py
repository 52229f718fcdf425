from __future__ import annotations

from typing import Protocol, runtime_checkable, Dict


@runtime_checkable
class QueueProvider(Protocol):
    """
    Outbound job queue.

    One message per accepted submission: body is the raw payload, attributes
    carry operationId / submittedAt / statusURL. Returns the transport's
    message id. Any transport failure propagates to the caller.
    """

    def send_message(self, body: bytes, attributes: Dict[str, str]) -> str: ...
