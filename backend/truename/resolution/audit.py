"""Detached audit writes for name disclosures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter

from truename.resolution.types import AuditEvent

logger = logging.getLogger(__name__)

AuditWriter = Callable[[AuditEvent], Awaitable[None]]


class AuditDispatcher:
    """Schedule audit writes as background tasks that never fail the caller."""

    def __init__(self, writer: AuditWriter) -> None:
        self._writer = writer
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, event: AuditEvent) -> asyncio.Task[None]:
        """Start writing ``event`` in the background and return the task."""

        task = asyncio.get_running_loop().create_task(self._write(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every audit write submitted so far."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _write(self, event: AuditEvent) -> None:
        started = perf_counter()
        try:
            await self._writer(event)
        except Exception:
            logger.exception(
                "audit.write_failed target_user_id=%s source=%s elapsed_ms=%.2f",
                event.target_user_id,
                event.source.value,
                (perf_counter() - started) * 1000.0,
            )
            return
        logger.debug(
            "audit.write_timing target_user_id=%s source=%s total_ms=%.2f",
            event.target_user_id,
            event.source.value,
            (perf_counter() - started) * 1000.0,
        )
