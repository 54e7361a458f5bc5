import pytest

from hospidesk.db.models import Role, TicketStatus
from hospidesk.services import tickets as rules
from hospidesk.store.base import FieldFilter


def test_lifecycle_table():
    assert rules.can_transition(TicketStatus.open, TicketStatus.in_progress)
    assert rules.can_transition(TicketStatus.open, TicketStatus.resolved)
    assert rules.can_transition(TicketStatus.pending, TicketStatus.in_progress)
    assert not rules.can_transition(TicketStatus.in_progress, TicketStatus.open)

    # terminal states: no reopen
    for src in (TicketStatus.resolved, TicketStatus.closed):
        assert rules.is_terminal(src)
        for dst in TicketStatus:
            assert not rules.can_transition(src, dst)


def test_nothing_moves_to_closed():
    for src in TicketStatus:
        assert not rules.can_transition(src, TicketStatus.closed)


def test_incomplete_transition_table_fails_fast():
    assert set(rules.ALLOWED_TRANSITIONS) == set(TicketStatus)
    partial = {s: frozenset() for s in TicketStatus if s != TicketStatus.pending}
    with pytest.raises(RuntimeError, match="pending"):
        rules._covering(partial)


@pytest.mark.parametrize("status, expected", [
    (TicketStatus.open, [TicketStatus.in_progress, TicketStatus.pending, TicketStatus.resolved]),
    (TicketStatus.in_progress, [TicketStatus.pending, TicketStatus.resolved]),
    (TicketStatus.pending, [TicketStatus.in_progress, TicketStatus.resolved]),
    (TicketStatus.resolved, []),
    (TicketStatus.closed, []),
])
def test_allowed_next_statuses_for_admin(status, expected):
    assert rules.allowed_next_statuses(Role.admin, status) == expected


def test_patient_gets_no_status_actions():
    for status in TicketStatus:
        assert rules.allowed_next_statuses(Role.patient, status) == []
    assert rules.allowed_next_statuses(None, TicketStatus.open) == []


def test_visibility():
    assert rules.can_view(Role.patient, "u1", "u1")
    assert not rules.can_view(Role.patient, "u1", "u2")
    assert rules.can_view(Role.admin, "a1", "u2")
    assert not rules.can_view(None, "u1", "u1")
    assert rules.can_comment(Role.patient, "u1", "u1")
    assert not rules.can_manage(Role.patient)
    assert rules.can_manage(Role.admin)


def test_patient_query_is_scoped_to_creator():
    spec = rules.tickets_query(Role.patient, "u1")
    assert spec.collection == "tickets"
    assert spec.filters == (FieldFilter("created_by", "u1"),)
    assert spec.order_by == "created_at" and spec.descending
    assert spec.limit is None


def test_admin_query_sees_everything():
    spec = rules.tickets_query(Role.admin, "a1", status=TicketStatus.pending, limit=10)
    assert spec.filters == (FieldFilter("status", "pending"),)
    assert spec.limit == 10


def test_status_filter_round_trip_is_idempotent():
    base = rules.tickets_query(Role.patient, "u1")
    filtered = rules.tickets_query(Role.patient, "u1", status=TicketStatus.in_progress)
    assert filtered != base
    assert rules.tickets_query(Role.patient, "u1", status=None) == base


def test_comments_query_oldest_first():
    spec = rules.comments_query("t1")
    assert spec.collection == "tickets/t1/comments"
    assert spec.order_by == "created_at" and not spec.descending
