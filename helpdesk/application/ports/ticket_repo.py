"""Port interface for ticket persistence."""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.policies.authorization import TicketScope


class TicketRepository(ABC):
    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        ...

    @abstractmethod
    async def list_scoped(self, scope: TicketScope) -> list[Ticket]:
        """Tickets matching *scope*, newest first. The filter runs in the store."""
        ...

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        ...


class TicketHistoryRepository(ABC):
    @abstractmethod
    async def add(self, entry: TicketHistory) -> TicketHistory:
        ...

    @abstractmethod
    async def get_by_ticket(self, ticket_id: int) -> list[TicketHistory]:
        ...
