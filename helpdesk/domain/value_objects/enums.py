"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class Role(str, Enum):
    ORG_ADMIN = "orgAdmin"
    AGENT = "Agent"
    CUSTOMER = "Customer"

    @classmethod
    def from_external(cls, raw: str) -> "Role":
        """Translate a stored or legacy role name into the canonical role.

        Raises:
            ValueError: if the name is not a known role or legacy alias.
        """
        key = (raw or "").strip().lower()
        try:
            return LEGACY_ROLE_NAMES[key]
        except KeyError:
            raise ValueError(f"Unknown role: {raw!r}") from None


# Older invites and shared-media grants used these names interchangeably.
LEGACY_ROLE_NAMES: dict[str, Role] = {
    "orgadmin": Role.ORG_ADMIN,
    "org_admin": Role.ORG_ADMIN,
    "owner": Role.ORG_ADMIN,
    "agent": Role.AGENT,
    "reviewer": Role.AGENT,
    "customer": Role.CUSTOMER,
    "viewer": Role.CUSTOMER,
}


class AssignmentAlgo(str, Enum):
    ROUND_ROBIN = "RR"
    LEAST_ACTIVE = "LAA"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketAction(str, Enum):
    READ = "read"
    SET_STATUS = "set_status"
    EDIT_DESCRIPTION = "edit_description"
    REASSIGN = "reassign"


class DispatchStrategy(str, Enum):
    """Which tier of the fallback chain produced an assignment."""

    ROUND_ROBIN = "round_robin"
    LEAST_ACTIVE = "least_active"
    ANY_AGENT = "any_agent"
    NONE = "none"


class DenyReason(str, Enum):
    NOT_A_MEMBER = "not_a_member"
    WRONG_ORGANIZATION = "wrong_organization"
    NOT_VISIBLE = "not_visible"
    INSUFFICIENT_ROLE = "insufficient_role"
    INVALID_TRANSITION = "invalid_transition"
    TERMINAL_STATE = "terminal_state"
    UNVERIFIABLE = "unverifiable"
