"""Tests for domain enums and the legacy role translation table."""

import pytest

from helpdesk.domain.value_objects.enums import AssignmentAlgo, Role, TicketStatus


def test_canonical_role_names_round_trip():
    for role in Role:
        assert Role.from_external(role.value) is role


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("owner", Role.ORG_ADMIN),
        ("orgAdmin", Role.ORG_ADMIN),
        ("reviewer", Role.AGENT),
        ("viewer", Role.CUSTOMER),
        ("  AGENT ", Role.AGENT),
    ],
)
def test_legacy_role_names_collapse(raw, expected):
    assert Role.from_external(raw) is expected


def test_unknown_role_raises():
    with pytest.raises(ValueError, match="Unknown role"):
        Role.from_external("superuser")


def test_assignment_algo_values():
    assert AssignmentAlgo("RR") is AssignmentAlgo.ROUND_ROBIN
    assert AssignmentAlgo("LAA") is AssignmentAlgo.LEAST_ACTIVE


def test_ticket_statuses():
    assert [s.value for s in TicketStatus] == ["open", "in_progress", "resolved", "closed"]
