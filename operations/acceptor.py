# operations/acceptor.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from core.errors import ConfigurationError, SubmissionFailed
from core.settings import ServiceSettings, ValetSettings
from core.valet import format_ts, issue_read_token
from operations.contracts import OperationHandle
from operations.ids import new_operation_id, result_key, status_url
from providers.queue import QueueProvider
from providers.storage import StorageProvider

log = logging.getLogger(__name__)


class WorkAcceptor:
    """
    Accepts a submission and hands back an operation handle.

    Exactly one enqueue per accepted call. If the enqueue fails nothing is
    returned and the caller retries the whole submission (a retry gets a new id).
    """

    def __init__(
        self,
        storage: StorageProvider,
        queue: QueueProvider,
        service: ServiceSettings,
        valet: ValetSettings,
    ) -> None:
        if not service.base_url:
            raise ConfigurationError("base URL is required to build status URLs")
        self.storage = storage
        self.queue = queue
        self.service = service
        self.valet = valet

    def accept(self, body: bytes, now: Optional[datetime] = None) -> OperationHandle:
        operation_id = new_operation_id()
        submitted_at = now or datetime.now(timezone.utc)
        rqs = status_url(self.service.base_url, operation_id)

        # Issued before the result exists; redeemable once the processor writes it
        token = issue_read_token(self.storage, result_key(operation_id), self.valet, now=submitted_at)

        attributes = {
            "operationId": operation_id,
            "submittedAt": submitted_at.isoformat(),
            "statusURL": rqs,
        }
        try:
            message_id = self.queue.send_message(body, attributes)
        except Exception as exc:
            log.warning("Enqueue failed for operation %s: %s", operation_id, exc)
            raise SubmissionFailed(f"Failed to enqueue operation {operation_id}: {exc}") from exc

        log.info("Accepted operation %s (%d bytes), status at %s", operation_id, len(body or b""), rqs)
        return OperationHandle(
            id=operation_id,
            statusUrl=rqs,
            valetKey=token.uri,
            valetKeyExpiresAt=format_ts(token.expires_at),
            submittedAt=submitted_at.isoformat(),
            messageId=message_id or None,
        )
