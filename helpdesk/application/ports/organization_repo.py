"""Port interface for organizations and their assignment settings."""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.organization import AssignmentSettings, Organization


class OrganizationRepository(ABC):
    @abstractmethod
    async def get_by_id(self, organization_id: str) -> Organization | None:
        ...

    @abstractmethod
    async def save(self, organization: Organization) -> Organization:
        ...

    @abstractmethod
    async def update_assignment_settings(
        self, organization_id: str, settings: AssignmentSettings
    ) -> AssignmentSettings | None:
        """Persist new settings. Returns None if the organization does not exist."""
        ...
