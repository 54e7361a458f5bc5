"""
Reports service

Aggregated slices over a set of tickets. Works on what a live subscription
already delivered, so the Home and Admin screens and the /admin/report
endpoint all count the same way.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Iterable, Optional

from hospidesk.db.models import TicketCategory, TicketPriority, TicketStatus
from hospidesk.schemas.tickets import Ticket


def count_by_status(tickets: Iterable[Ticket]) -> Dict[TicketStatus, int]:
    out = {s: 0 for s in TicketStatus}
    for t in tickets:
        out[t.status] += 1
    return out


def count_by_category(tickets: Iterable[Ticket], *, skip_empty: bool = False) -> Dict[TicketCategory, int]:
    out = {c: 0 for c in TicketCategory}
    for t in tickets:
        out[t.category] += 1
    if skip_empty:
        return {c: n for c, n in out.items() if n}
    return out


def latest_report(tickets: Iterable[Ticket], *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Simple report:
      - breakdown by status
      - breakdown by priority
      - breakdown by category
      - how many were resolved in the last 24 hours
    """
    tickets = list(tickets)
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=24)

    by_priority = {p.value: 0 for p in TicketPriority}
    for t in tickets:
        by_priority[t.priority.value] += 1

    resolved_24h = sum(
        1 for t in tickets
        if t.status == TicketStatus.resolved and t.resolved_at is not None and t.resolved_at >= since
    )

    return {
        "total": len(tickets),
        "by_status": {s.value: c for s, c in count_by_status(tickets).items()},
        "by_priority": by_priority,
        "by_category": {c.value: n for c, n in count_by_category(tickets).items()},
        "resolved_last_24h": resolved_24h,
        "generated_at": now.isoformat(),
    }
