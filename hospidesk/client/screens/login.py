# hospidesk/client/screens/login.py
from __future__ import annotations

from hospidesk.client.screens.base import Screen
from hospidesk.services.auth import register_user, sign_in


class LoginScreen(Screen):
    """Sign-in / self-registration form."""

    requires_user = False

    def __init__(self, ctx):
        super().__init__(ctx)
        self.is_login = True
        self.name = ""
        self.email = ""
        self.password = ""
        self.sector = ""

    def toggle_mode(self) -> None:
        self.is_login = not self.is_login
        self.error = None

    @property
    def submit_label(self) -> str:
        if self.busy:
            return "Iniciando..." if self.is_login else "Creando..."
        return "Acceder" if self.is_login else "Crear Cuenta"

    @property
    def toggle_label(self) -> str:
        return "¿No tienes cuenta? Regístrate" if self.is_login else "¿Ya tienes cuenta? Inicia sesión"

    async def submit(self) -> bool:
        # the session resolver reacts to the auth event; nothing to navigate here
        async def _action():
            if self.is_login:
                await sign_in(self.ctx.identity, {"email": self.email, "password": self.password})
            else:
                await register_user(self.ctx.identity, self.ctx.users, {
                    "email": self.email,
                    "password": self.password,
                    "name": self.name,
                    "sector": self.sector,
                })

        ok = await self._run(_action, failure="Revisa tus credenciales o intenta más tarde.")
        if ok:
            self.password = ""
        return ok
