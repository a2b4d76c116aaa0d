"""Port interface for the membership directory."""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.membership import Membership


class MembershipRepository(ABC):
    @abstractmethod
    async def list_agents(self, organization_id: str) -> list[Membership]:
        """All Agent memberships of the organization, ordered by joined_at ASC."""
        ...

    @abstractmethod
    async def get_membership(self, organization_id: str, user_id: str) -> Membership | None:
        ...

    @abstractmethod
    async def save(self, membership: Membership) -> Membership:
        ...
