# hospidesk/store/sql.py
"""
SQLAlchemy-backed document store.

Collections map onto the ORM models: ``users`` -> User, ``tickets`` -> Ticket,
``tickets/<id>/comments`` -> Comment. Change fan-out is in-process: after each
committed write the affected subscriptions re-run their query and receive a
snapshot if the result changed. Subscribing needs a running event loop; the
first snapshot is delivered from a task (see `drain`).
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.types import Enum as SAEnum

from hospidesk.core.errors import BackendError, NotFound
from hospidesk.db.models import Comment, Ticket, User
from hospidesk.store.base import (
    Document,
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Listener,
    QuerySnapshot,
    QuerySpec,
    Subscription,
    resolve_timestamps,
    utcnow,
)

log = logging.getLogger(__name__)

_ROOTS = {"users": User, "tickets": Ticket}
# columns that address the document instead of being part of it
_ADDRESS_COLUMNS = {"id", "ticket_id"}


class _Target:
    """A resolved collection path: model + fixed column values (parent scope)."""

    def __init__(self, model, scope: dict[str, Any]):
        self.model = model
        self.scope = scope

    @property
    def int_ids(self) -> bool:
        return self.model is not User

    def pk(self, doc_id: str):
        if not self.int_ids:
            return doc_id
        try:
            return int(doc_id)
        except ValueError:
            return None

    def column(self, name: str):
        if name in _ADDRESS_COLUMNS or name not in self.model.__table__.c:
            raise ValueError(f"unknown field {name!r} for {self.model.__tablename__}")
        return self.model.__table__.c[name]


def _resolve(collection: str) -> _Target:
    parts = collection.strip("/").split("/")
    if len(parts) == 1 and parts[0] in _ROOTS:
        return _Target(_ROOTS[parts[0]], {})
    if len(parts) == 3 and parts[0] == "tickets" and parts[2] == "comments":
        try:
            return _Target(Comment, {"ticket_id": int(parts[1])})
        except ValueError:
            # non-numeric ticket ids never exist here
            return _Target(Comment, {"ticket_id": -1})
    raise ValueError(f"unknown collection {collection!r}")


def _coerce(column, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column.type, SAEnum) and column.type.enum_class is not None:
        return column.type.enum_class(getattr(value, "value", value))
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is None:
        # SQLite hands back naive values; everything is stored as UTC
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_document(obj) -> Document:
    data = {
        col.key: _plain(getattr(obj, col.key))
        for col in obj.__table__.columns
        if col.key not in _ADDRESS_COLUMNS
    }
    return Document(str(obj.id), data)


class SqlDocumentStore(DocumentStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Callable[[], Any] = utcnow):
        self._sessions = session_factory
        self._clock = clock
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task] = set()

    # ==== helpers ====

    def _values(self, target: _Target, data: Mapping[str, Any]) -> dict[str, Any]:
        now = self._clock()
        out = {}
        for key, value in resolve_timestamps(data, now).items():
            out[key] = _coerce(target.column(key), value)
        return out

    async def _load_one(self, db: AsyncSession, target: _Target, doc_id: str):
        pk = target.pk(doc_id)
        if pk is None:
            return None
        obj = await db.get(target.model, pk)
        if obj is None:
            return None
        for key, value in target.scope.items():
            if getattr(obj, key) != value:
                return None
        return obj

    def _statement(self, spec: QuerySpec):
        target = _resolve(spec.collection)
        model = target.model
        stmt = select(model)
        for key, value in target.scope.items():
            stmt = stmt.where(getattr(model, key) == value)
        for f in spec.filters:
            col = target.column(f.field)
            stmt = stmt.where(col == _coerce(col, f.value))
        if spec.order_by is not None:
            col = target.column(spec.order_by)
            stmt = stmt.order_by(col.desc() if spec.descending else col.asc())
        # ties: arrival order
        stmt = stmt.order_by(model.id.asc())
        if spec.limit is not None:
            stmt = stmt.limit(spec.limit)
        return stmt

    # ==== reads ====

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        target = _resolve(collection)
        try:
            async with self._sessions() as db:
                obj = await self._load_one(db, target, doc_id)
                return _to_document(obj) if obj is not None else None
        except SQLAlchemyError as e:
            log.exception("get %s/%s failed", collection, doc_id)
            raise BackendError() from e

    async def query(self, spec: QuerySpec) -> QuerySnapshot:
        stmt = self._statement(spec)
        try:
            async with self._sessions() as db:
                rows = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            log.exception("query on %s failed", spec.collection)
            raise BackendError() from e
        return QuerySnapshot(tuple(_to_document(r) for r in rows))

    # ==== subscriptions ====

    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        on_next: Callable[[DocumentSnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        _resolve(collection)
        listener = Listener(on_next, on_error, meta={"collection": collection, "doc_id": doc_id})
        return self._register(listener)

    def subscribe_query(
        self,
        spec: QuerySpec,
        on_next: Callable[[QuerySnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        # build once so a bad field fails here, not inside the task
        self._statement(spec)
        listener = Listener(on_next, on_error, meta={"collection": spec.collection, "spec": spec})
        return self._register(listener)

    def _register(self, listener: Listener) -> Subscription:
        listener.meta["lock"] = asyncio.Lock()
        self._listeners.append(listener)
        task = asyncio.get_running_loop().create_task(self._refresh(listener))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return Subscription(lambda: self._drop(listener))

    def _drop(self, listener: Listener) -> None:
        listener.active = False
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def drain(self) -> None:
        """Wait until every scheduled snapshot delivery has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _snapshot(self, listener: Listener):
        spec: QuerySpec | None = listener.meta.get("spec")
        if spec is not None:
            return await self.query(spec)
        doc_id = listener.meta["doc_id"]
        return DocumentSnapshot(doc_id, await self.get(listener.meta["collection"], doc_id))

    async def _refresh(self, listener: Listener) -> None:
        async with listener.meta["lock"]:
            if not listener.active:
                return
            try:
                snapshot = await self._snapshot(listener)
            except BackendError as e:
                listener.fail(e)
                return
            if "last" in listener.meta and listener.meta["last"] == snapshot:
                return
            listener.meta["last"] = snapshot
            listener.deliver(snapshot)

    async def _notify(self, collection: str, doc_id: str) -> None:
        for listener in list(self._listeners):
            if not listener.active or listener.meta["collection"] != collection:
                continue
            if "spec" not in listener.meta and listener.meta["doc_id"] != doc_id:
                continue
            await self._refresh(listener)

    # ==== writes ====

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        target = _resolve(collection)
        values = self._values(target, data)
        if not target.int_ids:
            values["id"] = uuid.uuid4().hex
        try:
            async with self._sessions() as db:
                obj = target.model(**values, **target.scope)
                db.add(obj)
                await db.commit()
                doc_id = str(obj.id)
        except SQLAlchemyError as e:
            log.exception("add to %s failed", collection)
            raise BackendError() from e
        await self._notify(collection, doc_id)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        target = _resolve(collection)
        pk = target.pk(doc_id)
        if pk is None:
            raise ValueError(f"invalid id {doc_id!r} for {collection}")
        values = self._values(target, data)
        try:
            async with self._sessions() as db:
                obj = await self._load_one(db, target, doc_id)
                if obj is None:
                    db.add(target.model(id=pk, **values, **target.scope))
                else:
                    for key, value in values.items():
                        setattr(obj, key, value)
                await db.commit()
        except SQLAlchemyError as e:
            log.exception("set %s/%s failed", collection, doc_id)
            raise BackendError() from e
        await self._notify(collection, doc_id)

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        target = _resolve(collection)
        values = self._values(target, fields)
        try:
            async with self._sessions() as db:
                obj = await self._load_one(db, target, doc_id)
                if obj is None:
                    raise NotFound(f"{collection}/{doc_id} no existe")
                for key, value in values.items():
                    setattr(obj, key, value)
                await db.commit()
        except SQLAlchemyError as e:
            log.exception("update %s/%s failed", collection, doc_id)
            raise BackendError() from e
        await self._notify(collection, doc_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        target = _resolve(collection)
        try:
            async with self._sessions() as db:
                obj = await self._load_one(db, target, doc_id)
                if obj is None:
                    return
                await db.delete(obj)
                await db.commit()
        except SQLAlchemyError as e:
            log.exception("delete %s/%s failed", collection, doc_id)
            raise BackendError() from e
        await self._notify(collection, doc_id)
        if target.model is Ticket:
            await self._notify(f"tickets/{doc_id}/comments", "")

    async def close(self) -> None:
        for listener in list(self._listeners):
            self._drop(listener)
        await self.drain()
