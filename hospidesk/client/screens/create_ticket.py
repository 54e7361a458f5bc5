# hospidesk/client/screens/create_ticket.py
from __future__ import annotations

from typing import Optional

from hospidesk.client.screens.base import Screen
from hospidesk.db.models import TicketCategory
from hospidesk.services.display import CATEGORY


class CreateTicketScreen(Screen):
    def __init__(self, ctx):
        super().__init__(ctx)
        self.created_id: Optional[str] = None
        self.reset()

    def reset(self) -> None:
        self.title = ""
        self.description = ""
        self.category = TicketCategory.hardware
        self.location = ""

    @property
    def categories(self):
        return [(c, CATEGORY[c]) for c in TicketCategory]

    def select_category(self, category: TicketCategory) -> None:
        self.category = TicketCategory(category)

    async def submit(self) -> bool:
        async def _action():
            self.created_id = await self.ctx.tickets.create_ticket(self.user, {
                "title": self.title,
                "description": self.description,
                "category": self.category,
                "location": self.location,
            })

        ok = await self._run(_action, failure="No se pudo crear el ticket. Inténtalo de nuevo.")
        if ok:
            self.notice = "Ticket creado correctamente"
            self.reset()
        return ok
