"""Seed an organization and its members from a CSV file.

CSV columns: user_id, role, max_tickets (optional, agents only).
Roles accept legacy names (owner, reviewer, viewer).

Usage:
    python -m helpdesk.tools.seed_db --name "Acme" --members data/members.csv
    python -m helpdesk.tools.seed_db --name "Acme" --members data/members.csv --auto-assign --algo RR
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from helpdesk.adapters.persistence.database import async_session_factory, engine
from helpdesk.adapters.persistence.repositories import (
    SqlAvailabilityRepository,
    SqlMembershipRepository,
    SqlOrganizationRepository,
)
from helpdesk.config import settings
from helpdesk.domain.entities.agent_availability import AgentAvailability
from helpdesk.domain.entities.membership import Membership
from helpdesk.domain.entities.organization import AssignmentSettings, Organization
from helpdesk.domain.value_objects.enums import AssignmentAlgo, Role

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


def load_members(path: Path) -> list[dict]:
    """Read member rows, skipping ones with an unknown role or a bad capacity."""
    rows = []
    with path.open(encoding="utf-8", newline="") as f:
        for i, raw in enumerate(csv.DictReader(f), start=2):
            user_id = (raw.get("user_id") or "").strip()
            try:
                role = Role.from_external(raw.get("role") or "")
            except ValueError:
                logger.warning("Line %d: unknown role %r, skipping", i, raw.get("role"))
                continue
            if not user_id:
                logger.warning("Line %d: missing user_id, skipping", i)
                continue
            max_raw = (raw.get("max_tickets") or "").strip()
            try:
                max_tickets = int(max_raw) if max_raw else settings.default_max_tickets
            except ValueError:
                max_tickets = 0
            if max_tickets < 1:
                logger.warning("Line %d: invalid max_tickets %r, skipping", i, max_raw)
                continue
            rows.append({"user_id": user_id, "role": role, "max_tickets": max_tickets})
    return rows


async def seed(
    name: str,
    members_csv: Path,
    auto_assign: bool = False,
    algo: AssignmentAlgo = AssignmentAlgo.LEAST_ACTIVE,
) -> dict[str, int | str]:
    """Create the organization, its memberships and agent availability rows."""
    members = load_members(members_csv)
    org = Organization(
        id=str(uuid.uuid4()),
        name=name,
        settings=AssignmentSettings(auto_assign=auto_assign, assignment_algo=algo),
    )
    counts: dict[str, int | str] = {"organization_id": org.id, "members": 0, "agents": 0}

    # Join times are spaced out so the CSV order becomes the rotation order.
    base = datetime.now(timezone.utc)

    async with async_session_factory() as session:
        await SqlOrganizationRepository(session).save(org)
        memberships = SqlMembershipRepository(session)
        availability = SqlAvailabilityRepository(session)

        for i, row in enumerate(members):
            await memberships.save(
                Membership(
                    organization_id=org.id,
                    user_id=row["user_id"],
                    role=row["role"],
                    joined_at=base + timedelta(seconds=i),
                )
            )
            counts["members"] += 1
            if row["role"] == Role.AGENT:
                await availability.save(
                    AgentAvailability(
                        organization_id=org.id,
                        user_id=row["user_id"],
                        max_tickets=row["max_tickets"],
                    )
                )
                counts["agents"] += 1

        await session.commit()

    logger.info("Seeded organization %s (%s): %s", name, org.id, counts)
    return counts


async def _main(args: argparse.Namespace) -> None:
    try:
        await seed(args.name, Path(args.members), args.auto_assign, AssignmentAlgo(args.algo))
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a helpdesk organization")
    parser.add_argument("--name", required=True)
    parser.add_argument("--members", required=True, help="CSV with user_id,role,max_tickets")
    parser.add_argument("--auto-assign", action="store_true")
    parser.add_argument("--algo", choices=[a.value for a in AssignmentAlgo], default="LAA")
    asyncio.run(_main(parser.parse_args()))


if __name__ == "__main__":
    main()
