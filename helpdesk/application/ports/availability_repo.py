"""Port interface for agent availability (read-only for this core)."""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.agent_availability import AgentAvailability


class AvailabilityRepository(ABC):
    @abstractmethod
    async def list_eligible(self, organization_id: str) -> list[AgentAvailability]:
        """Rows with is_available AND current_tickets < max_tickets,
        ordered by current_tickets ASC, user_id ASC."""
        ...

    @abstractmethod
    async def get(self, organization_id: str, user_id: str) -> AgentAvailability | None:
        ...
