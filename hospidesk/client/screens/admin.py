# hospidesk/client/screens/admin.py
from __future__ import annotations

import enum

from hospidesk.client.live import LiveQuery
from hospidesk.client.screens.base import Screen
from hospidesk.core.errors import PermissionDenied
from hospidesk.db.models import TicketCategory, TicketStatus
from hospidesk.schemas.tickets import Ticket
from hospidesk.schemas.users import UserProfile
from hospidesk.services import display
from hospidesk.services.reports import count_by_category, count_by_status
from hospidesk.services.tickets import can_manage, tickets_query, users_query


class AdminTab(str, enum.Enum):
    overview = "overview"
    tickets = "tickets"
    users = "users"


class AdminScreen(Screen):
    """All tickets and all users; admin only."""

    def __init__(self, ctx):
        super().__init__(ctx)
        self.tab = AdminTab.overview
        self.search = ""
        self.tickets: list[Ticket] = []
        self.users: list[UserProfile] = []
        self.live_tickets = LiveQuery(ctx.store, self._on_tickets, self._read_failed("No se pudo cargar la lista de tickets."))
        self.live_users = LiveQuery(ctx.store, self._on_users, self._read_failed("No se pudo cargar la lista de usuarios."))

    def open(self) -> None:
        user = self.user
        if user is None or not can_manage(user.role):
            raise PermissionDenied()
        self.scope.add(self.live_tickets)
        self.scope.add(self.live_users)
        self.live_tickets.set_spec(tickets_query(user.role, user.id))
        self.live_users.set_spec(users_query())

    def _on_tickets(self, docs) -> None:
        self.tickets = [Ticket.from_document(d) for d in docs]

    def _on_users(self, docs) -> None:
        self.users = [UserProfile.from_document(d) for d in docs]

    @property
    def loading(self) -> bool:
        return self.live_tickets.loading or self.live_users.loading

    def select_tab(self, tab: AdminTab) -> None:
        self.tab = AdminTab(tab)

    def set_search(self, text: str) -> None:
        self.search = text

    # ==== overview ====

    @property
    def category_counts(self) -> dict[TicketCategory, int]:
        return count_by_category(self.tickets, skip_empty=True)

    @property
    def status_counts(self) -> dict[TicketStatus, int]:
        return count_by_status(self.tickets)

    # ==== tabs ====

    @property
    def filtered_tickets(self) -> list[Ticket]:
        q = self.search.strip().lower()
        if not q:
            return list(self.tickets)
        return [t for t in self.tickets if q in t.title.lower() or q in t.id.lower()]

    @property
    def filtered_users(self) -> list[UserProfile]:
        q = self.search.strip().lower()
        if not q:
            return list(self.users)
        return [u for u in self.users if q in u.name.lower() or q in (u.sector or "").lower()]

    def role_label(self, user: UserProfile) -> str:
        return display.role_badge(user.role).label
