# hospidesk/store/base.py
"""
Document store collaborator.

Collections are addressed by slash paths: ``users``, ``tickets`` and
``tickets/<ticket_id>/comments``. A document is a flat field map. Queries are
declarative (`QuerySpec`) and are always executed by the store itself.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

log = logging.getLogger(__name__)


class _ServerTimestamp:
    """Sentinel: the store replaces it with its own clock at write time."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timestamps(data: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}


def comments_path(ticket_id: str) -> str:
    return f"tickets/{ticket_id}/comments"


# ==== Snapshots ====


@dataclass(frozen=True)
class Document:
    id: str
    data: Mapping[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    document: Optional[Document]

    @property
    def exists(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class QuerySnapshot:
    docs: tuple[Document, ...]

    def __len__(self) -> int:
        return len(self.docs)

    def __iter__(self):
        return iter(self.docs)


# ==== Queries ====


@dataclass(frozen=True)
class FieldFilter:
    field: str
    value: Any

    def matches(self, data: Mapping[str, Any]) -> bool:
        return _plain(data.get(self.field)) == _plain(self.value)


@dataclass(frozen=True)
class QuerySpec:
    """
    Declarative query: collection scope, equality filters (AND), one sort key,
    optional result cap. Immutable; every builder returns a new spec, so a spec
    can be used as a subscription key.
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def where(self, field_name: str, value: Any) -> "QuerySpec":
        return replace(self, filters=self.filters + (FieldFilter(field_name, _plain(value)),))

    def order(self, field_name: str, *, descending: bool = False) -> "QuerySpec":
        return replace(self, order_by=field_name, descending=descending)

    def take(self, n: Optional[int]) -> "QuerySpec":
        if n is not None and n < 1:
            raise ValueError("limit must be positive")
        return replace(self, limit=n)

    def matches(self, data: Mapping[str, Any]) -> bool:
        return all(f.matches(data) for f in self.filters)

    def apply(self, docs: Iterable[Document]) -> list[Document]:
        """Evaluate the spec over documents given in arrival order."""
        rows = [d for d in docs if self.matches(d.data)]
        if self.order_by is not None:
            key = self.order_by
            # stable sort: equal keys keep arrival order
            rows.sort(key=lambda d: _sort_key(d.data.get(key)), reverse=self.descending)
        if self.limit is not None:
            rows = rows[: self.limit]
        return rows


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def _sort_key(value: Any):
    # None sorts first; timestamps pending resolution never reach here
    return (value is not None, value if value is not None else 0)


# ==== Subscriptions ====

SnapshotCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """Releasable handle of a live listener. `release()` is idempotent."""

    def __init__(self, on_release: Callable[[], None] | None = None):
        self._on_release = on_release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._on_release is not None:
            self._on_release()
            self._on_release = None


@dataclass(eq=False)
class Listener:
    """Store-side bookkeeping of one subscription."""

    on_next: SnapshotCallback
    on_error: Optional[ErrorCallback] = None
    active: bool = True
    meta: dict[str, Any] = field(default_factory=dict)

    def deliver(self, snapshot: Any) -> None:
        if self.active:
            self.on_next(snapshot)

    def fail(self, exc: Exception) -> None:
        if not self.active:
            return
        if self.on_error is None:
            log.error("unhandled subscription error: %s", exc)
            return
        self.on_error(exc)


class DocumentStore(abc.ABC):
    """Operations the application consumes from the document database."""

    @abc.abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abc.abstractmethod
    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        on_next: Callable[[DocumentSnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        ...

    @abc.abstractmethod
    def subscribe_query(
        self,
        spec: QuerySpec,
        on_next: Callable[[QuerySnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        ...

    @abc.abstractmethod
    async def query(self, spec: QuerySpec) -> QuerySnapshot:
        """One-shot read of a query."""

    @abc.abstractmethod
    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert with a generated id; returns the id."""

    @abc.abstractmethod
    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or overwrite the document with the given id."""

    @abc.abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Patch fields of an existing document; NotFound if missing."""

    @abc.abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def close(self) -> None:
        return None
