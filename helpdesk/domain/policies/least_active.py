"""LeastActivePolicy — pick the eligible agent carrying the fewest tickets."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from helpdesk.domain.entities.agent_availability import AgentAvailability
from helpdesk.domain.entities.membership import Membership


def pick_least_active(
    rows: Iterable[AgentAvailability],
    exclude: Collection[str] = frozenset(),
) -> AgentAvailability | None:
    """Deterministic least-active pick.

    1. Keep rows that are eligible (available and under their max) and not excluded.
    2. Sort by (current_tickets ASC, user_id ASC); ties go to the lowest user id.
    3. Return the first, or None when nobody is eligible.

    Filtering is repeated here even though the store query already does it,
    so the result never depends on how a store orders or filters its rows.
    """
    eligible = [r for r in rows if r.is_eligible() and r.user_id not in exclude]
    if not eligible:
        return None
    return min(eligible, key=lambda r: (r.current_tickets, r.user_id))


def roster_order(agents: Iterable[Membership]) -> list[Membership]:
    """Agents ordered by join time, then user id.

    Rows with an unknown join time sort last.
    """
    return sorted(
        agents,
        key=lambda m: (m.joined_at is None, m.joined_at or 0, m.user_id),
    )


def pick_any_agent(
    agents: Iterable[Membership],
    exclude: Collection[str] = frozenset(),
) -> Membership | None:
    """Final fallback: the earliest-joined Agent, ignoring availability."""
    for member in roster_order(a for a in agents if a.is_agent()):
        if member.user_id not in exclude:
            return member
    return None
