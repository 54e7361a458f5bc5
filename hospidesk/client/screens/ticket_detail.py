# hospidesk/client/screens/ticket_detail.py
from __future__ import annotations

import logging
from typing import Optional

from hospidesk.client.live import LiveDocument, LiveQuery
from hospidesk.client.screens.base import Screen
from hospidesk.core.errors import PermissionDenied
from hospidesk.db.models import TicketPriority, TicketStatus
from hospidesk.schemas.comments import Comment
from hospidesk.schemas.tickets import Ticket
from hospidesk.services import tickets as rules

log = logging.getLogger(__name__)


class TicketDetailScreen(Screen):
    """
    One ticket and its comments, both live. Ticket and comment deliveries are
    independent; neither is assumed to arrive first.
    """

    def __init__(self, ctx, ticket_id: str):
        super().__init__(ctx)
        self.ticket_id = ticket_id
        self.ticket: Optional[Ticket] = None
        self.comments: list[Comment] = []
        self.comment_text = ""
        self.adding_comment = False
        # ticket deleted while open: the screen should navigate back
        self.gone = False
        self.live_ticket = LiveDocument(ctx.store, self._on_ticket, self._read_failed("No se pudo cargar el ticket."))
        self.live_comments = LiveQuery(ctx.store, self._on_comments, self._read_failed("No se pudieron cargar los comentarios."))

    def open(self) -> None:
        self.scope.add(self.live_ticket)
        self.scope.add(self.live_comments)
        self.live_ticket.open(rules.TICKETS, self.ticket_id)

    def _on_ticket(self, doc) -> None:
        if doc is None:
            self.ticket = None
            self.gone = True
            self.live_comments.release()
            return

        ticket = Ticket.from_document(doc)
        user = self.user
        if user is None or not rules.can_view(user.role, user.id, ticket.created_by):
            log.warning("user %s opened foreign ticket %s", user.id if user else None, ticket.id)
            self.error = PermissionDenied.message
            self.ticket = None
            self.close()
            return

        self.ticket = ticket
        # comments only once visibility is confirmed
        if self.live_comments.spec is None:
            self.live_comments.set_spec(rules.comments_query(self.ticket_id))

    def _on_comments(self, docs) -> None:
        self.comments = [Comment.from_document(d) for d in docs]

    @property
    def loading(self) -> bool:
        return self.live_ticket.loading

    # ==== comments ====

    async def add_comment(self) -> bool:
        text = self.comment_text.strip()
        if not text or self.user is None:
            return False

        async def _action():
            await self.ctx.tickets.add_comment(self.user, self.ticket_id, {"content": text})

        self.adding_comment = True
        try:
            ok = await self._run(_action, failure="No se pudo agregar el comentario.")
        finally:
            self.adding_comment = False
        if ok:
            self.comment_text = ""
        return ok

    # ==== admin actions ====

    @property
    def can_manage(self) -> bool:
        return self.user is not None and rules.can_manage(self.user.role)

    @property
    def status_actions(self) -> list[TicketStatus]:
        if self.ticket is None or self.user is None:
            return []
        return rules.allowed_next_statuses(self.user.role, self.ticket.status)

    async def set_status(self, status: TicketStatus) -> bool:
        async def _action():
            await self.ctx.tickets.set_status(self.user, self.ticket_id, status)

        return await self._run(_action, failure="No se pudo actualizar el ticket.")

    async def set_priority(self, priority: TicketPriority) -> bool:
        async def _action():
            await self.ctx.tickets.set_priority(self.user, self.ticket_id, priority)

        return await self._run(_action, failure="No se pudo actualizar el ticket.")

    async def delete(self) -> bool:
        async def _action():
            await self.ctx.tickets.delete_ticket(self.user, self.ticket_id)

        return await self._run(_action, failure="No se pudo eliminar el ticket.")
