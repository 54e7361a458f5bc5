# hospidesk/client/screens/home.py
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from hospidesk.client.live import LiveQuery
from hospidesk.client.screens.base import Screen
from hospidesk.client.screens.ticket_list import LOAD_FAILED
from hospidesk.core.config import settings
from hospidesk.db.models import TicketStatus
from hospidesk.schemas.tickets import Ticket
from hospidesk.services import display
from hospidesk.services.reports import count_by_status
from hospidesk.services.tickets import tickets_query


class HomeScreen(Screen):
    """Greeting, quick stats and the most recent tickets of the user."""

    def __init__(self, ctx, *, clock: Callable[[], datetime] = datetime.now):
        super().__init__(ctx)
        self._clock = clock
        self.tickets: list[Ticket] = []
        self.live = LiveQuery(ctx.store, self._on_tickets, self._read_failed(LOAD_FAILED))

    def open(self) -> None:
        user = self.user
        self.scope.add(self.live)
        self.live.set_spec(tickets_query(user.role, user.id, limit=settings.home_recent_limit))

    def _on_tickets(self, docs) -> None:
        self.tickets = [Ticket.from_document(d) for d in docs]

    @property
    def loading(self) -> bool:
        return self.live.loading

    @property
    def greeting(self) -> str:
        name: Optional[str] = self.user.name if self.user else None
        hello = display.greeting(self._clock())
        return f"{hello}, {name}" if name else hello

    @property
    def stats(self) -> dict[str, int]:
        counts = count_by_status(self.tickets)
        return {
            "total": len(self.tickets),
            "open": counts[TicketStatus.open],
            "in_progress": counts[TicketStatus.in_progress],
            "resolved": counts[TicketStatus.resolved],
        }

    @property
    def hospital(self) -> dict[str, str]:
        return {
            "name": settings.hospital_name,
            "address": settings.hospital_address,
            "phone": settings.hospital_phone,
            "email": settings.hospital_email,
        }
