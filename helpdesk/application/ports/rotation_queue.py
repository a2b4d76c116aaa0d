"""Port interface for the per-organization round-robin rotation queue."""

from abc import ABC, abstractmethod


class RotationQueue(ABC):
    @abstractmethod
    async def rotate(self, organization_id: str) -> str | None:
        """Pop the front agent id and push it to the back, atomically.

        Returns None if the queue is empty.
        Must be a single store primitive; never a separate pop and push.
        """
        ...

    @abstractmethod
    async def length(self, organization_id: str) -> int:
        ...

    @abstractmethod
    async def push_all(self, organization_id: str, agent_ids: list[str]) -> int:
        """Append the whole roster in one write. Returns the new queue length."""
        ...

    @abstractmethod
    async def replace(self, organization_id: str, agent_ids: list[str]) -> int:
        """Clear the queue and push *agent_ids*, atomically. Returns the new length."""
        ...

    @abstractmethod
    async def snapshot(self, organization_id: str) -> list[str]:
        """Current queue contents, front first."""
        ...
