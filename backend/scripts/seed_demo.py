"""Seed a demo persona with name variants, contexts, and a consent, then resolve.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import delete, select

# Make `truename` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from truename.db.session import SessionLocal
from truename.models.audit_log_entry import AuditLogEntry
from truename.models.consent import Consent
from truename.models.context_name_assignment import ContextNameAssignment
from truename.models.name import Name
from truename.models.user_context import UserContext
from truename.resolution.engine import create_resolution_engine
from truename.resolution.types import ConsentStatus, NameCategory, ResolveRequest


DEFAULT_TARGET_USER_ID = "5f0c8f7e-2d7a-4c39-9f5e-3b0d1f6a7c11"
DEFAULT_REQUESTER_USER_ID = "a1b2c3d4-0000-4000-8000-000000000042"


def seed_persona(db, target_user_id: str, requester_user_id: str) -> None:
    """Create names, contexts, assignments, and one consent for the persona."""

    legal = Name(user_id=target_user_id, name_text="Jędrzej Lewandowski", name_type=NameCategory.LEGAL.value)
    preferred = Name(
        user_id=target_user_id,
        name_text="Jed Lewandowski",
        name_type=NameCategory.PREFERRED.value,
        is_preferred=True,
    )
    nickname = Name(user_id=target_user_id, name_text="JJ", name_type=NameCategory.NICKNAME.value)
    db.add_all([legal, preferred, nickname])
    db.flush()

    work = UserContext(user_id=target_user_id, context_name="Work Colleagues", description="Employer and HR systems")
    social = UserContext(user_id=target_user_id, context_name="Social Friends", description="Chat and social apps")
    db.add_all([work, social])
    db.flush()

    db.add_all(
        [
            ContextNameAssignment(user_id=target_user_id, context_id=work.id, name_id=legal.id),
            ContextNameAssignment(user_id=target_user_id, context_id=social.id, name_id=nickname.id),
            Consent(
                granter_user_id=target_user_id,
                requester_user_id=requester_user_id,
                context_id=work.id,
                status=ConsentStatus.GRANTED.value,
                granted_at=datetime.now(timezone.utc),
                expires_at=datetime.now(timezone.utc) + timedelta(days=90),
            ),
        ]
    )
    db.commit()


def reset_persona(db, target_user_id: str) -> None:
    """Remove existing records owned by the persona."""

    context_ids = list(db.scalars(select(UserContext.id).where(UserContext.user_id == target_user_id)))
    db.execute(delete(AuditLogEntry).where(AuditLogEntry.target_user_id == target_user_id))
    db.execute(delete(Consent).where(Consent.granter_user_id == target_user_id))
    db.execute(delete(ContextNameAssignment).where(ContextNameAssignment.context_id.in_(context_ids)))
    db.execute(delete(UserContext).where(UserContext.user_id == target_user_id))
    db.execute(delete(Name).where(Name.user_id == target_user_id))
    db.commit()


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a demo persona and run sample resolutions.")
    parser.add_argument(
        "--target-user-id",
        default=DEFAULT_TARGET_USER_ID,
        help=f"User ID to seed (default: {DEFAULT_TARGET_USER_ID})",
    )
    parser.add_argument(
        "--requester-user-id",
        default=DEFAULT_REQUESTER_USER_ID,
        help=f"User ID granted consent (default: {DEFAULT_REQUESTER_USER_ID})",
    )
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing records for the persona before seeding.",
    )
    return parser.parse_args()


async def run_sample_resolutions(target_user_id: str, requester_user_id: str) -> None:
    engine = create_resolution_engine()
    requests = [
        ResolveRequest(target_user_id=target_user_id, requester_user_id=requester_user_id, context_name="Work Colleagues"),
        ResolveRequest(target_user_id=target_user_id, context_name="Social Friends"),
        ResolveRequest(target_user_id=target_user_id, context_name="Gaming"),
        ResolveRequest(target_user_id=target_user_id),
    ]
    resolutions = await engine.resolve_names(requests)
    await engine.drain_audits()
    for request, resolution in zip(requests, resolutions):
        reason = resolution.metadata.fallback_reason.value if resolution.metadata.fallback_reason else "-"
        print(
            f"  context={request.context_name or '-':<16} requester={'yes' if request.has_requester else 'no':<3} "
            f"-> {resolution.name!r} source={resolution.source.value} reason={reason}"
        )


def main() -> None:
    """Seed demo data and print resolutions for each priority layer."""

    args = parse_args()
    target_user_id: str = args.target_user_id

    with SessionLocal() as db:
        if not args.no_reset:
            reset_persona(db, target_user_id)
        seed_persona(db, target_user_id, args.requester_user_id)

    print("Seed complete")
    print(f"target_user_id={target_user_id}")
    print("Resolutions:")
    asyncio.run(run_sample_resolutions(target_user_id, args.requester_user_id))
    print()
    print("Inspect:")
    print(f"  GET /audit/{target_user_id}")


if __name__ == "__main__":
    main()
