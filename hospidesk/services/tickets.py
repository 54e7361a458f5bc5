"""
Tickets service (business rules for tickets)

The state machine, the permission checks and the role-scoped query specs live
here. They are pure functions; the repository and the screens import them so
the rules are not duplicated.
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from hospidesk.db.models import Role, TicketPriority, TicketStatus
from hospidesk.store.base import QuerySpec, comments_path

TICKETS = "tickets"
USERS = "users"

INITIAL_STATUS = TicketStatus.open
INITIAL_PRIORITY = TicketPriority.medium


def _covering(table: dict[TicketStatus, FrozenSet[TicketStatus]]) -> dict[TicketStatus, FrozenSet[TicketStatus]]:
    missing = set(TicketStatus) - set(table)
    if missing:
        raise RuntimeError(f"transition table misses {sorted(s.value for s in missing)}")
    return table


# Allowed transitions (state machine). resolved/closed are terminal: no
# reopen, and nothing moves a ticket to closed.
ALLOWED_TRANSITIONS = _covering({
    TicketStatus.open: frozenset({TicketStatus.in_progress, TicketStatus.pending, TicketStatus.resolved}),
    TicketStatus.in_progress: frozenset({TicketStatus.pending, TicketStatus.resolved}),
    TicketStatus.pending: frozenset({TicketStatus.in_progress, TicketStatus.resolved}),
    TicketStatus.resolved: frozenset(),
    TicketStatus.closed: frozenset(),
})

# order in which status actions are offered
_ACTION_ORDER = (TicketStatus.in_progress, TicketStatus.pending, TicketStatus.resolved)


def can_transition(src: TicketStatus, dst: TicketStatus) -> bool:
    """
    Checks whether moving from src to dst is allowed.
    """
    return dst in ALLOWED_TRANSITIONS[TicketStatus(src)]


def is_terminal(status: TicketStatus) -> bool:
    return not ALLOWED_TRANSITIONS[TicketStatus(status)]


def allowed_next_statuses(role: Optional[Role], status: TicketStatus) -> list[TicketStatus]:
    """
    Status actions to offer: the transition set for admins, nothing for
    anybody else.
    """
    if not is_admin(role):
        return []
    nxt = ALLOWED_TRANSITIONS[TicketStatus(status)]
    return [s for s in _ACTION_ORDER if s in nxt]


def is_admin(role: Optional[Role]) -> bool:
    return role == Role.admin


def can_view(role: Optional[Role], user_id: str, created_by: str) -> bool:
    """
    Creator always sees the ticket, an admin sees every ticket.
    """
    return is_admin(role) or (role is not None and user_id == created_by)


def can_manage(role: Optional[Role]) -> bool:
    """
    Status, priority and deletion: admin only.
    """
    return is_admin(role)


def can_comment(role: Optional[Role], user_id: str, created_by: str) -> bool:
    return can_view(role, user_id, created_by)


# ==== Query specs ====


def tickets_query(
    role: Optional[Role],
    user_id: str,
    *,
    status: Optional[TicketStatus] = None,
    limit: Optional[int] = None,
) -> QuerySpec:
    """
    Role-scoped ticket list: creator == self unless admin, optional status,
    newest first, optional cap. Filters are ANDed by the store.
    """
    spec = QuerySpec(TICKETS)
    if not is_admin(role):
        spec = spec.where("created_by", user_id)
    if status is not None:
        spec = spec.where("status", TicketStatus(status))
    spec = spec.order("created_at", descending=True)
    return spec.take(limit)


def users_query() -> QuerySpec:
    return QuerySpec(USERS).order("created_at", descending=True)


def comments_query(ticket_id: str) -> QuerySpec:
    return QuerySpec(comments_path(ticket_id)).order("created_at")
