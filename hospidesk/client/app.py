# hospidesk/client/app.py
from __future__ import annotations

import logging
from typing import Optional, TypeVar

from hospidesk.backend import Backend
from hospidesk.client.context import ClientContext
from hospidesk.client.screens.base import Screen
from hospidesk.client.session import Session, SessionResolver
from hospidesk.db.models import Role
from hospidesk.store.base import Subscription

log = logging.getLogger(__name__)

S = TypeVar("S", bound=Screen)


class ClientApp:
    """
    One client session (a device): identity, session resolver and the screens
    currently open. When the signed-in user goes away (sign-out, profile
    deleted, another account signs in) or its role changes, every user-bound
    screen is torn down.
    """

    def __init__(self, backend: Backend):
        self.backend = backend
        self.identity = backend.identity()
        self.resolver = SessionResolver(self.identity, backend.store)
        self.context = ClientContext(
            store=backend.store,
            identity=self.identity,
            session=self.resolver.session,
            tickets=backend.tickets,
            users=backend.users,
        )
        self._screens: list[Screen] = []
        self._session_sub: Optional[Subscription] = None
        self._user_key: Optional[tuple[str, Optional[Role]]] = None

    @property
    def session(self) -> Session:
        return self.resolver.session

    @property
    def screens(self) -> list[Screen]:
        return [s for s in self._screens if not s.closed]

    def start(self) -> Session:
        if self._session_sub is None:
            self._session_sub = self.session.subscribe(self._on_session)
        return self.resolver.start()

    def open(self, screen_cls: type[S], *args, **kwargs) -> S:
        if not self.session.ready:
            raise RuntimeError("session still loading")
        if screen_cls.requires_user and self.session.user is None:
            raise RuntimeError(f"{screen_cls.__name__} needs a signed-in user")
        screen = screen_cls(self.context, *args, **kwargs)
        screen.open()
        self._screens.append(screen)
        return screen

    def _on_session(self, session: Session) -> None:
        if not session.ready:
            return
        user = session.user
        key = (user.id, user.role) if user else None
        if key != self._user_key:
            # open screens were scoped to the previous user and role
            if self._user_key is not None:
                log.info("session changed for %s (role %s), closing screens", *self._user_key)
                self._close_screens(user_bound_only=True)
            self._user_key = key

    def _close_screens(self, *, user_bound_only: bool) -> None:
        for screen in list(self._screens):
            if user_bound_only and not screen.requires_user:
                continue
            screen.close()
            self._screens.remove(screen)

    def close(self) -> None:
        self._close_screens(user_bound_only=False)
        if self._session_sub is not None:
            self._session_sub.release()
            self._session_sub = None
        self.resolver.close()
