"""Organization entity — a tenant with its own agents and assignment settings."""

from dataclasses import dataclass, field

from helpdesk.domain.value_objects.enums import AssignmentAlgo


@dataclass
class AssignmentSettings:
    auto_assign: bool = False
    assignment_algo: AssignmentAlgo = AssignmentAlgo.LEAST_ACTIVE


@dataclass
class Organization:
    id: str
    name: str
    settings: AssignmentSettings = field(default_factory=AssignmentSettings)
