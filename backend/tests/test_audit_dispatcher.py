"""Tests for detached audit writes."""

from __future__ import annotations

import asyncio
import unittest

from truename.resolution.audit import AuditDispatcher
from truename.resolution.types import (
    AuditAction,
    AuditEvent,
    FallbackReason,
    ResolutionMetadata,
    ResolutionSource,
)


def _event(target_user_id: str = "user-1") -> AuditEvent:
    return AuditEvent(
        target_user_id=target_user_id,
        requester_user_id=None,
        source=ResolutionSource.PREFERRED_FALLBACK,
        resolved_name="Jed",
        name_id="name-1",
        metadata=ResolutionMetadata(
            resolution_timestamp="2026-10-19T12:00:00+00:00",
            performance_ms=1.5,
            name_id="name-1",
            fallback_reason=FallbackReason.NO_SPECIFIC_REQUEST,
            had_requester=False,
        ),
    )


class AuditDispatcherTests(unittest.IsolatedAsyncioTestCase):
    async def test_submit_runs_writer_in_background(self) -> None:
        written: list[AuditEvent] = []
        release = asyncio.Event()

        async def writer(event: AuditEvent) -> None:
            await release.wait()
            written.append(event)

        dispatcher = AuditDispatcher(writer)
        dispatcher.submit(_event())

        self.assertEqual(dispatcher.pending_count, 1)
        self.assertEqual(written, [])

        release.set()
        await dispatcher.drain()

        self.assertEqual(len(written), 1)
        self.assertEqual(dispatcher.pending_count, 0)

    async def test_writer_failure_is_logged_not_raised(self) -> None:
        async def writer(event: AuditEvent) -> None:
            raise RuntimeError("disk full")

        dispatcher = AuditDispatcher(writer)

        with self.assertLogs("truename.resolution.audit", level="ERROR") as captured:
            task = dispatcher.submit(_event("user-9"))
            await dispatcher.drain()

        self.assertTrue(task.done())
        self.assertIsNone(task.exception())
        self.assertIn("audit.write_failed target_user_id=user-9", captured.output[0])

    async def test_drain_waits_for_writes_submitted_during_drain(self) -> None:
        written: list[str] = []
        dispatcher: AuditDispatcher

        async def writer(event: AuditEvent) -> None:
            await asyncio.sleep(0)
            written.append(event.target_user_id)
            if event.target_user_id == "first":
                dispatcher.submit(_event("second"))

        dispatcher = AuditDispatcher(writer)
        dispatcher.submit(_event("first"))
        await dispatcher.drain()

        self.assertEqual(written, ["first", "second"])

    async def test_drain_with_nothing_pending_returns(self) -> None:
        async def writer(event: AuditEvent) -> None:
            return None

        await AuditDispatcher(writer).drain()


class AuditEventDetailsTests(unittest.TestCase):
    def test_details_carry_resolution_fields(self) -> None:
        event = _event()

        details = event.details()

        self.assertEqual(event.action, AuditAction.NAME_DISCLOSED)
        self.assertEqual(
            details,
            {
                "resolution_type": "preferred_fallback",
                "resolved_name": "Jed",
                "resolution_timestamp": "2026-10-19T12:00:00+00:00",
                "performance_ms": 1.5,
                "fallback_reason": "no_specific_request",
                "requested_context": None,
                "had_requester": False,
                "consent_id": None,
                "error": None,
            },
        )


if __name__ == "__main__":
    unittest.main()
