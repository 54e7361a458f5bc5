# hospidesk/identity/base.py
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from hospidesk.store.base import Subscription

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """An authenticated identity; `uid` is also the id of its profile document."""

    uid: str
    email: str
    token: str


AuthStateCallback = Callable[[Optional[Principal]], None]


class IdentityProvider(abc.ABC):
    """
    Identity collaborator of one client session.

    `subscribe_auth_state` calls back immediately with the current state and
    then on every sign-in/sign-out.
    """

    def __init__(self) -> None:
        self._current: Optional[Principal] = None
        self._callbacks: list[AuthStateCallback] = []

    @property
    def current(self) -> Optional[Principal]:
        return self._current

    @abc.abstractmethod
    async def sign_in(self, email: str, password: str) -> Principal:
        ...

    @abc.abstractmethod
    async def sign_up(self, email: str, password: str) -> Principal:
        ...

    async def sign_out(self) -> None:
        self._set_current(None)

    def subscribe_auth_state(self, callback: AuthStateCallback) -> Subscription:
        self._callbacks.append(callback)
        callback(self._current)

        def _release() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return Subscription(_release)

    def _set_current(self, principal: Optional[Principal]) -> None:
        self._current = principal
        log.info("auth state: %s", principal.uid if principal else "signed out")
        for cb in list(self._callbacks):
            cb(principal)
