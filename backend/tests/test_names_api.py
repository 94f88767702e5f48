"""HTTP route tests for name resolution and the audit log."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker

from truename.db.dependencies import get_db
from truename.main import app
from truename.models.audit_log_entry import AuditLogEntry
from truename.models.base import Base
from truename.models.context_name_assignment import ContextNameAssignment
from truename.models.name import Name
from truename.models.user_context import UserContext
from truename.resolution.engine import NameResolutionEngine
from truename.resolution.types import NameCategory
from truename.services.identity_store import SqlIdentityStore
from truename.services.resolution import get_resolution_engine

TARGET = "5f0c8f7e-2d7a-4c39-9f5e-3b0d1f6a7c11"
REQUESTER = "a1b2c3d4-0000-4000-8000-000000000042"


class NamesApiTests(unittest.IsolatedAsyncioTestCase):
    @classmethod
    def setUpClass(cls) -> None:
        # Batch lookups and audit writes run in worker threads, so each needs its own connection.
        cls.tmpdir = tempfile.TemporaryDirectory()
        cls.engine = create_engine(
            f"sqlite+pysqlite:///{Path(cls.tmpdir.name) / 'truename.db'}",
            future=True,
            connect_args={"check_same_thread": False, "timeout": 10},
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()
        cls.tmpdir.cleanup()

    async def asyncSetUp(self) -> None:
        self._reset_tables()
        self._seed_persona()
        self.resolution_engine = NameResolutionEngine(SqlIdentityStore(self.SessionLocal))

        def override_get_db():
            db: Session = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_resolution_engine] = lambda: self.resolution_engine
        self.client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self) -> None:
        await self.client.aclose()
        await self.resolution_engine.drain_audits()
        app.dependency_overrides.clear()

    async def test_health(self) -> None:
        response = await self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    async def test_resolve_context_specific_name(self) -> None:
        response = await self.client.post(
            "/names/resolve",
            json={"target_user_id": TARGET, "context_name": "Social Friends"},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["name"], "JJ")
        self.assertEqual(data["source"], "context_specific")
        self.assertEqual(data["metadata"]["context_name"], "Social Friends")
        self.assertEqual(data["metadata"]["name_id"], self.nickname_id)
        self.assertFalse(data["metadata"]["had_requester"])
        self.assertIsNone(data["metadata"]["fallback_reason"])
        self.assertIn("resolved_at", data)

    async def test_resolve_falls_back_with_reason(self) -> None:
        response = await self.client.post(
            "/names/resolve",
            json={"target_user_id": TARGET, "requester_user_id": REQUESTER, "context_name": "Gaming"},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["name"], "Jed Lewandowski")
        self.assertEqual(data["source"], "preferred_fallback")
        self.assertEqual(data["metadata"]["fallback_reason"], "no_consent_and_no_context_assignment")
        self.assertTrue(data["metadata"]["had_requester"])

    async def test_resolve_rejects_invalid_payloads(self) -> None:
        payloads = [
            {"target_user_id": "not-a-uuid"},
            {"target_user_id": TARGET, "requester_user_id": TARGET},
            {"target_user_id": TARGET, "context_name": ""},
            {"target_user_id": TARGET, "context_name": "x" * 101},
            {"target_user_id": TARGET, "context_name": "Work; DROP TABLE names"},
            {"context_name": "Work"},
        ]
        for payload in payloads:
            with self.subTest(payload=payload):
                response = await self.client.post("/names/resolve", json=payload)
                self.assertEqual(response.status_code, 422)

    async def test_batch_resolves_each_context_in_order(self) -> None:
        response = await self.client.get(
            f"/names/resolve/batch/{TARGET}",
            params={"contexts": "Social Friends, Work Colleagues ,Gaming"},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["user_id"], TARGET)
        self.assertEqual(data["total_contexts"], 3)
        self.assertEqual(data["successful_resolutions"], 3)
        self.assertEqual(
            [(item["context"], item["resolved_name"], item["source"]) for item in data["resolutions"]],
            [
                ("Social Friends", "JJ", "context_specific"),
                ("Work Colleagues", "Jędrzej Lewandowski", "context_specific"),
                ("Gaming", "Jed Lewandowski", "preferred_fallback"),
            ],
        )
        self.assertGreaterEqual(data["batch_time_ms"], 0.0)

    async def test_batch_requires_a_context(self) -> None:
        blank = await self.client.get(f"/names/resolve/batch/{TARGET}", params={"contexts": " , "})
        missing = await self.client.get(f"/names/resolve/batch/{TARGET}")

        self.assertEqual(blank.status_code, 422)
        self.assertEqual(missing.status_code, 422)

    async def test_resolutions_are_audited_and_listed(self) -> None:
        await self.client.post("/names/resolve", json={"target_user_id": TARGET})
        await self.client.post("/names/resolve", json={"target_user_id": TARGET, "context_name": "Social Friends"})
        await self.resolution_engine.drain_audits()

        response = await self.client.get(f"/audit/{TARGET}", params={"limit": 1})
        bad_limit = await self.client.get(f"/audit/{TARGET}", params={"limit": 0})

        self.assertEqual(response.status_code, 200)
        page = response.json()["data"]
        self.assertEqual(page["total"], 2)
        self.assertEqual(page["limit"], 1)
        self.assertEqual(len(page["entries"]), 1)
        self.assertTrue(page["has_more"])
        self.assertEqual(page["entries"][0]["action"], "NAME_DISCLOSED")
        self.assertEqual(bad_limit.status_code, 422)

    def _reset_tables(self) -> None:
        with self.SessionLocal() as db:
            db.execute(delete(AuditLogEntry))
            db.execute(delete(ContextNameAssignment))
            db.execute(delete(UserContext))
            db.execute(delete(Name))
            db.commit()

    def _seed_persona(self) -> None:
        with self.SessionLocal() as db:
            legal = Name(user_id=TARGET, name_text="Jędrzej Lewandowski", name_type=NameCategory.LEGAL.value)
            preferred = Name(
                user_id=TARGET,
                name_text="Jed Lewandowski",
                name_type=NameCategory.PREFERRED.value,
                is_preferred=True,
            )
            nickname = Name(user_id=TARGET, name_text="JJ", name_type=NameCategory.NICKNAME.value)
            db.add_all([legal, preferred, nickname])
            db.flush()

            work = UserContext(user_id=TARGET, context_name="Work Colleagues")
            social = UserContext(user_id=TARGET, context_name="Social Friends")
            db.add_all([work, social])
            db.flush()

            db.add_all(
                [
                    ContextNameAssignment(user_id=TARGET, context_id=work.id, name_id=legal.id),
                    ContextNameAssignment(user_id=TARGET, context_id=social.id, name_id=nickname.id),
                ]
            )
            db.commit()
            self.nickname_id = nickname.id


if __name__ == "__main__":
    unittest.main()
