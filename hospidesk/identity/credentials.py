# hospidesk/identity/credentials.py
from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hospidesk.core.errors import AuthError, BackendError
from hospidesk.db.models import Credential


@dataclass(frozen=True)
class CredentialRecord:
    uid: str
    email: str
    password_hash: str


class CredentialStore(abc.ABC):
    @abc.abstractmethod
    async def get_by_email(self, email: str) -> Optional[CredentialRecord]:
        ...

    @abc.abstractmethod
    async def add(self, record: CredentialRecord) -> None:
        """Raises AuthError('email-already-in-use') on duplicates."""


class MemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        self._by_email: dict[str, CredentialRecord] = {}

    async def get_by_email(self, email: str) -> Optional[CredentialRecord]:
        return self._by_email.get(email)

    async def add(self, record: CredentialRecord) -> None:
        if record.email in self._by_email:
            raise AuthError("email-already-in-use")
        self._by_email[record.email] = record


class SqlCredentialStore(CredentialStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def get_by_email(self, email: str) -> Optional[CredentialRecord]:
        try:
            async with self._sessions() as db:
                row = (await db.execute(select(Credential).where(Credential.email == email))).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise BackendError() from e
        if row is None:
            return None
        return CredentialRecord(uid=row.id, email=row.email, password_hash=row.password_hash)

    async def add(self, record: CredentialRecord) -> None:
        try:
            async with self._sessions() as db:
                db.add(Credential(id=record.uid, email=record.email, password_hash=record.password_hash))
                await db.commit()
        except IntegrityError as e:
            raise AuthError("email-already-in-use") from e
        except SQLAlchemyError as e:
            raise BackendError() from e
