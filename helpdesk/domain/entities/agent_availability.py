"""AgentAvailability — per-(organization, agent) load counters."""

from dataclasses import dataclass


@dataclass
class AgentAvailability:
    organization_id: str
    user_id: str
    is_available: bool = True
    current_tickets: int = 0
    max_tickets: int = 10

    def is_eligible(self) -> bool:
        # Rows where current > max are tolerated; they are simply never eligible.
        return self.is_available and self.current_tickets < self.max_tickets
