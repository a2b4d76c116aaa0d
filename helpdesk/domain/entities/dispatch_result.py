"""DispatchResult — the outcome of routing one new ticket."""

from dataclasses import dataclass

from helpdesk.domain.value_objects.enums import DispatchStrategy


@dataclass
class DispatchResult:
    agent_id: str | None
    strategy: DispatchStrategy = DispatchStrategy.NONE
    degraded: bool = False  # a store failed or timed out somewhere in the chain

    @classmethod
    def unassigned(cls, degraded: bool = False) -> "DispatchResult":
        return cls(agent_id=None, strategy=DispatchStrategy.NONE, degraded=degraded)

    @property
    def assigned(self) -> bool:
        return self.agent_id is not None
