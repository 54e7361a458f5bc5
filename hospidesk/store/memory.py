# hospidesk/store/memory.py
"""
In-process document store.

Delivery is synchronous: a write returns only after every affected listener
has received its new snapshot. Listeners only get a snapshot when their result
actually changed.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Mapping, Optional

from hospidesk.core.errors import NotFound
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


class MemoryDocumentStore(DocumentStore):
    def __init__(self, clock: Callable[[], Any] = utcnow):
        self._clock = clock
        # path -> {doc_id: data}; dict order is arrival order
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._listeners: list[Listener] = []

    # ==== reads ====

    def _docs(self, collection: str) -> list[Document]:
        return [Document(doc_id, dict(data)) for doc_id, data in self._collections.get(collection, {}).items()]

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collections.get(collection, {}).get(doc_id)
        return Document(doc_id, dict(data)) if data is not None else None

    async def query(self, spec: QuerySpec) -> QuerySnapshot:
        return QuerySnapshot(tuple(spec.apply(self._docs(spec.collection))))

    # ==== subscriptions ====

    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        on_next: Callable[[DocumentSnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        listener = Listener(on_next, on_error, meta={"collection": collection, "doc_id": doc_id})
        return self._register(listener)

    def subscribe_query(
        self,
        spec: QuerySpec,
        on_next: Callable[[QuerySnapshot], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        listener = Listener(on_next, on_error, meta={"collection": spec.collection, "spec": spec})
        return self._register(listener)

    def _register(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        self._refresh(listener, force=True)
        return Subscription(lambda: self._drop(listener))

    def _drop(self, listener: Listener) -> None:
        listener.active = False
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _snapshot(self, listener: Listener):
        spec: QuerySpec | None = listener.meta.get("spec")
        if spec is not None:
            return QuerySnapshot(tuple(spec.apply(self._docs(spec.collection))))
        doc_id = listener.meta["doc_id"]
        data = self._collections.get(listener.meta["collection"], {}).get(doc_id)
        return DocumentSnapshot(doc_id, Document(doc_id, dict(data)) if data is not None else None)

    def _refresh(self, listener: Listener, *, force: bool = False) -> None:
        snapshot = self._snapshot(listener)
        if not force and listener.meta.get("last") == snapshot:
            return
        listener.meta["last"] = snapshot
        listener.deliver(snapshot)

    def _notify(self, collection: str, doc_id: str) -> None:
        for listener in list(self._listeners):
            if not listener.active or listener.meta["collection"] != collection:
                continue
            if "spec" not in listener.meta and listener.meta["doc_id"] != doc_id:
                continue
            self._refresh(listener)

    # ==== writes ====

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = resolve_timestamps(data, self._clock())
        log.debug("add %s/%s", collection, doc_id)
        self._notify(collection, doc_id)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = resolve_timestamps(data, self._clock())
        self._notify(collection, doc_id)

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        current = self._collections.get(collection, {}).get(doc_id)
        if current is None:
            raise NotFound(f"{collection}/{doc_id} no existe")
        current.update(resolve_timestamps(fields, self._clock()))
        self._notify(collection, doc_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        docs = self._collections.get(collection, {})
        if docs.pop(doc_id, None) is None:
            return
        # nested collections go with their parent
        prefix = f"{collection}/{doc_id}/"
        nested = [path for path in self._collections if path.startswith(prefix)]
        for path in nested:
            del self._collections[path]
        self._notify(collection, doc_id)
        for path in nested:
            for listener in list(self._listeners):
                if listener.active and listener.meta["collection"] == path:
                    self._refresh(listener)
