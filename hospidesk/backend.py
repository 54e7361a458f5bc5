# hospidesk/backend.py
"""
Wiring of the backend collaborator: document store + credential store, either
in process (memory) or on SQLAlchemy (sql).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from hospidesk.core.config import Settings, settings as default_settings
from hospidesk.db.session import create_all, make_engine, make_session_factory
from hospidesk.identity.credentials import CredentialStore, MemoryCredentialStore, SqlCredentialStore
from hospidesk.identity.local import LocalIdentityProvider
from hospidesk.services.repository import TicketRepository, UserRepository
from hospidesk.store.base import DocumentStore
from hospidesk.store.memory import MemoryDocumentStore
from hospidesk.store.sql import SqlDocumentStore

log = logging.getLogger(__name__)


@dataclass
class Backend:
    store: DocumentStore
    credentials: CredentialStore
    engine: Optional[AsyncEngine] = None

    def identity(self) -> LocalIdentityProvider:
        """A fresh identity session (one per client/device)."""
        return LocalIdentityProvider(self.credentials)

    @property
    def tickets(self) -> TicketRepository:
        return TicketRepository(self.store)

    @property
    def users(self) -> UserRepository:
        return UserRepository(self.store)

    async def close(self) -> None:
        await self.store.close()
        if self.engine is not None:
            await self.engine.dispose()


def memory_backend() -> Backend:
    return Backend(store=MemoryDocumentStore(), credentials=MemoryCredentialStore())


async def sql_backend(database_url: str, *, create_tables: bool = True) -> Backend:
    engine = make_engine(database_url)
    if create_tables:
        await create_all(engine)
    sessions = make_session_factory(engine)
    return Backend(
        store=SqlDocumentStore(sessions),
        credentials=SqlCredentialStore(sessions),
        engine=engine,
    )


async def create_backend(cfg: Settings = default_settings) -> Backend:
    log.info("backend: %s", cfg.backend)
    if cfg.backend == "sql":
        # in prod the schema comes from Alembic
        return await sql_backend(cfg.database_url, create_tables=cfg.env == "dev")
    return memory_backend()
