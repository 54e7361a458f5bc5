# hospidesk/client/screens/profile.py
from __future__ import annotations

import logging

from hospidesk.client.screens.base import Screen
from hospidesk.services import display

log = logging.getLogger(__name__)


class ProfileScreen(Screen):
    def __init__(self, ctx):
        super().__init__(ctx)
        self.editing = False
        self.edited_name = ""
        self.edited_sector = ""

    def open(self) -> None:
        self._load_fields()

    def _load_fields(self) -> None:
        user = self.user
        self.edited_name = user.name if user else ""
        self.edited_sector = (user.sector or "") if user else ""

    @property
    def role_label(self) -> str:
        return display.role_badge(self.user.role if self.user else None).label

    def start_edit(self) -> None:
        self._load_fields()
        self.editing = True

    def cancel(self) -> None:
        self._load_fields()
        self.editing = False

    async def save(self) -> bool:
        async def _action():
            await self.ctx.users.update_profile(self.user, {
                "name": self.edited_name,
                "sector": self.edited_sector,
            })

        ok = await self._run(_action, failure="No se pudo actualizar el perfil.")
        if ok:
            self.notice = "Perfil actualizado correctamente"
            self.editing = False
        return ok

    async def logout(self) -> None:
        log.info("user %s signing out", self.user.id if self.user else None)
        await self.ctx.identity.sign_out()
