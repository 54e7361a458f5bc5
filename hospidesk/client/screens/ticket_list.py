# hospidesk/client/screens/ticket_list.py
from __future__ import annotations

from typing import Optional

from hospidesk.client.live import LiveQuery
from hospidesk.client.screens.base import Screen
from hospidesk.db.models import TicketStatus
from hospidesk.schemas.tickets import Ticket
from hospidesk.services.tickets import tickets_query

LOAD_FAILED = "No se pudo cargar la lista de tickets."


def matches_search(ticket: Ticket, text: str) -> bool:
    q = text.strip().lower()
    if not q:
        return True
    return (
        q in ticket.title.lower()
        or q in ticket.description.lower()
        or q in ticket.created_by_name.lower()
    )


class TicketListScreen(Screen):
    """
    Role-scoped ticket list with a store-side status filter and an in-memory
    text search over the live result.
    """

    def __init__(self, ctx):
        super().__init__(ctx)
        self.status_filter: Optional[TicketStatus] = None  # None = all
        self.search = ""
        self.tickets: list[Ticket] = []
        self.visible: list[Ticket] = []
        self.live = LiveQuery(ctx.store, self._on_tickets, self._read_failed(LOAD_FAILED))

    def open(self) -> None:
        self.scope.add(self.live)
        self._subscribe()

    def _subscribe(self) -> None:
        user = self.user
        self.live.set_spec(tickets_query(user.role, user.id, status=self.status_filter))

    def _on_tickets(self, docs) -> None:
        self.tickets = [Ticket.from_document(d) for d in docs]
        self._recompute()

    def _recompute(self) -> None:
        self.visible = [t for t in self.tickets if matches_search(t, self.search)]

    def set_status_filter(self, status: Optional[TicketStatus]) -> None:
        status = TicketStatus(status) if status is not None else None
        if status == self.status_filter:
            return
        self.status_filter = status
        self._subscribe()

    def set_search(self, text: str) -> None:
        self.search = text
        self._recompute()

    @property
    def loading(self) -> bool:
        return self.live.loading

    @property
    def empty_message(self) -> Optional[str]:
        if self.loading or self.visible:
            return None
        if self.search.strip() or self.status_filter is not None:
            return "No se encontraron tickets con los filtros aplicados"
        return "Aún no se han creado tickets"
