# hospidesk/client/session.py
"""
Session/identity resolver.

Turns auth-state events into one `Session` value: `loading` while the
principal's profile document is on its way, `signed_in` with a typed profile,
`signed_out` otherwise (no principal, no profile document, or a profile
without a valid role).
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

from hospidesk.core.errors import BackendError
from hospidesk.identity.base import IdentityProvider, Principal
from hospidesk.schemas.users import UserProfile
from hospidesk.services.tickets import USERS
from hospidesk.store.base import DocumentSnapshot, DocumentStore, Subscription

log = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    loading = "loading"
    signed_out = "signed_out"
    signed_in = "signed_in"


class Session:
    """
    Explicit session context handed to every screen model. Only the resolver
    changes it.
    """

    def __init__(self) -> None:
        self.state = SessionState.loading
        self.user: Optional[UserProfile] = None
        self.principal: Optional[Principal] = None
        self.error: Optional[str] = None
        self._observers: list[Callable[["Session"], None]] = []

    @property
    def ready(self) -> bool:
        """Screens render nothing while this is False."""
        return self.state != SessionState.loading

    def subscribe(self, callback: Callable[["Session"], None]) -> Subscription:
        self._observers.append(callback)

        def _release() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return Subscription(_release)

    def _set(self, state: SessionState, user: Optional[UserProfile], principal: Optional[Principal]) -> None:
        self.state = state
        self.user = user
        self.principal = principal
        for cb in list(self._observers):
            cb(self)


class SessionResolver:
    def __init__(self, identity: IdentityProvider, store: DocumentStore, session: Optional[Session] = None):
        self._identity = identity
        self._store = store
        self.session = session or Session()
        self._auth_sub: Optional[Subscription] = None
        self._profile_sub: Optional[Subscription] = None
        self._generation = 0

    def start(self) -> Session:
        if self._auth_sub is None:
            self._auth_sub = self._identity.subscribe_auth_state(self._on_auth_state)
        return self.session

    def close(self) -> None:
        if self._auth_sub is not None:
            self._auth_sub.release()
            self._auth_sub = None
        self._release_profile()
        self._generation += 1

    def _release_profile(self) -> None:
        if self._profile_sub is not None:
            self._profile_sub.release()
            self._profile_sub = None

    def _on_auth_state(self, principal: Optional[Principal]) -> None:
        # old profile listener goes first, so two listeners never interleave
        self._release_profile()
        self._generation += 1
        generation = self._generation
        self.session.error = None

        if principal is None:
            self.session._set(SessionState.signed_out, None, None)
            return

        self.session._set(SessionState.loading, None, principal)
        sub = self._store.subscribe_document(
            USERS,
            principal.uid,
            lambda snap: self._on_profile(generation, principal, snap),
            lambda exc: self._on_profile_error(generation, exc),
        )
        if generation != self._generation:
            # superseded during the first delivery
            sub.release()
        else:
            self._profile_sub = sub

    def _on_profile(self, generation: int, principal: Principal, snap: DocumentSnapshot) -> None:
        if generation != self._generation:
            return
        if not snap.exists:
            # account exists but its profile is not written yet (or was deleted)
            log.info("no profile for %s", principal.uid)
            self.session._set(SessionState.signed_out, None, principal)
            return

        profile = UserProfile.from_document(snap.document)
        if profile.role is None:
            log.warning("profile %s has no valid role, treating as unauthorized", principal.uid)
            self.session._set(SessionState.signed_out, None, principal)
            return

        self.session._set(SessionState.signed_in, profile, principal)

    def _on_profile_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return
        log.error("profile subscription failed: %s", exc)
        self.session.error = exc.message if isinstance(exc, BackendError) else BackendError.message
