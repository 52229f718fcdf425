# operations/status.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from core.errors import StoreUnavailable
from core.settings import PollingSettings, ServiceSettings, ValetSettings
from core.valet import issue_read_token
from operations.contracts import OnComplete, OnPending
from operations.ids import result_key, status_url
from providers.storage import StorageProvider

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
DisconnectCheck = Callable[[], Awaitable[bool]]


class Outcome(str, Enum):
    REDIRECT = "redirect"              # resolved, valet-key handoff
    INLINE = "inline"                  # resolved, bytes in body
    PENDING = "pending"                # 202 + Location
    TIMED_OUT = "timed_out"            # 404 after the backoff ceiling
    ABANDONED = "abandoned"            # client went away mid-wait


@dataclass(frozen=True)
class StatusResult:
    outcome: Outcome
    operation_id: str
    status_url: str
    redirect_url: Optional[str] = None
    body: Optional[bytes] = None
    retry_after_seconds: Optional[int] = None
    waited_ms: int = 0


class StatusCoordinator:
    """
    Resolves GET /status/{id}.

    The result object's existence is the only completion signal. In Blocking
    mode the handler sleeps `delay` ms before each recheck, doubling after
    every miss, and gives up once the delay itself reaches the ceiling
    (initial * factor). The ceiling bounds delay growth, not elapsed time.

    Store failures are retried on the same schedule; if the last check
    still failed, StoreUnavailable propagates instead of a not-found.
    """

    def __init__(
        self,
        storage: StorageProvider,
        service: ServiceSettings,
        valet: ValetSettings,
        polling: PollingSettings,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.storage = storage
        self.service = service
        self.valet = valet
        self.polling = polling
        self._sleep = sleep or asyncio.sleep

    async def _check(self, key: str) -> Tuple[bool, Optional[StoreUnavailable]]:
        try:
            exists = await asyncio.to_thread(self.storage.object_exists, key)
            return bool(exists), None
        except StoreUnavailable as exc:
            log.warning("Existence check for %s failed: %s", key, exc)
            return False, exc

    async def _deliver(self, operation_id: str, key: str, on_complete: OnComplete, waited_ms: int) -> StatusResult:
        rqs = status_url(self.service.base_url, operation_id)

        if on_complete is OnComplete.REDIRECT:
            # Presigning may resolve credentials over the network
            token = await asyncio.to_thread(issue_read_token, self.storage, key, self.valet)
            log.info("Operation %s resolved, redirecting to valet key (waited %d ms)", operation_id, waited_ms)
            return StatusResult(
                outcome=Outcome.REDIRECT,
                operation_id=operation_id,
                status_url=rqs,
                redirect_url=token.uri,
                waited_ms=waited_ms,
            )

        # OnComplete.INLINE: whole object in memory; large results should use Redirect
        data = await asyncio.to_thread(self.storage.get_object, key)
        log.info("Operation %s resolved, returning %d bytes inline (waited %d ms)", operation_id, len(data), waited_ms)
        return StatusResult(
            outcome=Outcome.INLINE,
            operation_id=operation_id,
            status_url=rqs,
            body=data,
            waited_ms=waited_ms,
        )

    def _pending(self, operation_id: str) -> StatusResult:
        rqs = status_url(self.service.base_url, operation_id)
        log.info("Operation %s still pending, status at %s", operation_id, rqs)
        return StatusResult(
            outcome=Outcome.PENDING,
            operation_id=operation_id,
            status_url=rqs,
            retry_after_seconds=self.polling.retry_after_seconds,
        )

    async def check(
        self,
        operation_id: str,
        on_complete: OnComplete = OnComplete.REDIRECT,
        on_pending: OnPending = OnPending.IMMEDIATE,
        is_disconnected: Optional[DisconnectCheck] = None,
    ) -> StatusResult:
        key = result_key(operation_id)
        log.info(
            "Status request for %s - OnComplete %s - OnPending %s",
            operation_id,
            on_complete.value,
            on_pending.value,
        )

        exists, err = await self._check(key)
        if exists:
            return await self._deliver(operation_id, key, on_complete, 0)
        if err is None and on_pending is OnPending.IMMEDIATE:
            return self._pending(operation_id)

        # Blocking wait, or a store failure being retried
        delay = self.polling.initial_backoff_ms
        ceiling = self.polling.ceiling_ms
        waited = 0
        while delay < ceiling:
            if is_disconnected is not None and await is_disconnected():
                log.info("Client disconnected while waiting on %s after %d ms; abandoning", operation_id, waited)
                return StatusResult(
                    outcome=Outcome.ABANDONED,
                    operation_id=operation_id,
                    status_url=status_url(self.service.base_url, operation_id),
                    waited_ms=waited,
                )

            log.info("Synchronous mode %s - retrying in %d ms", operation_id, delay)
            await self._sleep(delay / 1000.0)
            waited += delay

            exists, err = await self._check(key)
            if exists:
                return await self._deliver(operation_id, key, on_complete, waited)
            if err is None and on_pending is OnPending.IMMEDIATE:
                # Store recovered; Immediate callers get the normal 202
                return self._pending(operation_id)
            delay *= 2

        if err is not None:
            log.error("Store unavailable for %s after %d ms of retries", operation_id, waited)
            raise StoreUnavailable(f"Object store unavailable while checking {operation_id}") from err

        log.info("Synchronous mode %s - NOT FOUND after timeout %d ms (backoff reached %d ms)", operation_id, waited, delay)
        return StatusResult(
            outcome=Outcome.TIMED_OUT,
            operation_id=operation_id,
            status_url=status_url(self.service.base_url, operation_id),
            waited_ms=waited,
        )
