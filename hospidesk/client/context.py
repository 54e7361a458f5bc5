from __future__ import annotations

from dataclasses import dataclass

from hospidesk.client.session import Session
from hospidesk.identity.base import IdentityProvider
from hospidesk.services.repository import TicketRepository, UserRepository
from hospidesk.store.base import DocumentStore


@dataclass
class ClientContext:
    """Everything a screen model needs, passed explicitly."""

    store: DocumentStore
    identity: IdentityProvider
    session: Session
    tickets: TicketRepository
    users: UserRepository
