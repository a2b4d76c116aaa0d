"""Membership — the (organization, user, role) binding behind every permission check."""

from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.value_objects.enums import Role


@dataclass
class Membership:
    organization_id: str
    user_id: str
    role: Role
    joined_at: datetime | None = None

    def is_agent(self) -> bool:
        return self.role == Role.AGENT


@dataclass(frozen=True)
class Principal:
    """A user acting inside one organization, with the role held there."""

    user_id: str
    organization_id: str
    role: Role

    @classmethod
    def from_membership(cls, membership: Membership) -> "Principal":
        return cls(
            user_id=membership.user_id,
            organization_id=membership.organization_id,
            role=membership.role,
        )
