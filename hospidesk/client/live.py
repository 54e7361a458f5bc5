# hospidesk/client/live.py
"""
Live views over the document store.

`LiveQuery` keeps one subscription for the current QuerySpec. Switching the
spec releases the old subscription before opening the new one, and every
delivery is tagged with the generation it was opened under: anything arriving
from a superseded subscription is dropped.

`SubscriptionScope` owns every handle a screen opens and releases them all
when the screen goes away.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from hospidesk.core.errors import BackendError
from hospidesk.store.base import (
    Document,
    DocumentSnapshot,
    DocumentStore,
    QuerySnapshot,
    QuerySpec,
    Subscription,
)

log = logging.getLogger(__name__)


class Releasable(Protocol):
    def release(self) -> None:
        ...


class SubscriptionScope:
    def __init__(self) -> None:
        self._handles: list[Releasable] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._handles)

    def add(self, handle: Releasable) -> Releasable:
        if self._closed:
            handle.release()
            raise RuntimeError("subscription scope already closed")
        self._handles.append(handle)
        return handle

    def close(self) -> None:
        self._closed = True
        handles, self._handles = self._handles, []
        # newest first
        for handle in reversed(handles):
            handle.release()

    def __enter__(self) -> "SubscriptionScope":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class _LiveBase:
    def __init__(self, store: DocumentStore, on_error: Optional[Callable[[Exception], None]] = None):
        self._store = store
        self._on_error = on_error
        self._handle: Optional[Subscription] = None
        self._generation = 0
        self.loading = False
        self.error: Optional[str] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active(self) -> bool:
        return self._handle is not None and not self._handle.released

    def _next_generation(self) -> int:
        if self._handle is not None:
            self._handle.release()
            self._handle = None
        self._generation += 1
        return self._generation

    def _keep(self, generation: int, handle: Subscription) -> None:
        # the first delivery may already have released us (synchronous stores)
        if generation != self._generation:
            handle.release()
        else:
            self._handle = handle

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            log.debug("dropping delivery of generation %s (current %s)", generation, self._generation)
            return True
        return False

    def _fail(self, generation: int, exc: Exception) -> None:
        if self._is_stale(generation):
            return
        log.error("live subscription failed: %s", exc)
        self.error = exc.message if isinstance(exc, BackendError) else BackendError.message
        # stays in loading: nothing valid was delivered
        if self._on_error is not None:
            self._on_error(exc)

    def release(self) -> None:
        self._next_generation()
        self.loading = False


class LiveQuery(_LiveBase):
    def __init__(
        self,
        store: DocumentStore,
        on_change: Callable[[list[Document]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        super().__init__(store, on_error)
        self._on_change = on_change
        self.spec: Optional[QuerySpec] = None
        self.docs: list[Document] = []

    def set_spec(self, spec: QuerySpec) -> None:
        if spec == self.spec and self.active:
            return
        generation = self._next_generation()
        self.spec = spec
        self.loading = True
        self.error = None
        self._keep(generation, self._store.subscribe_query(
            spec,
            lambda snap: self._deliver(generation, snap),
            lambda exc: self._fail(generation, exc),
        ))

    def _deliver(self, generation: int, snapshot: QuerySnapshot) -> None:
        if self._is_stale(generation):
            return
        self.docs = list(snapshot.docs)
        self.loading = False
        self.error = None
        self._on_change(self.docs)


class LiveDocument(_LiveBase):
    def __init__(
        self,
        store: DocumentStore,
        on_change: Callable[[Optional[Document]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        super().__init__(store, on_error)
        self._on_change = on_change
        self.document: Optional[Document] = None

    def open(self, collection: str, doc_id: str) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        self._keep(generation, self._store.subscribe_document(
            collection,
            doc_id,
            lambda snap: self._deliver(generation, snap),
            lambda exc: self._fail(generation, exc),
        ))

    def _deliver(self, generation: int, snapshot: DocumentSnapshot) -> None:
        if self._is_stale(generation):
            return
        self.document = snapshot.document
        self.loading = False
        self.error = None
        self._on_change(self.document)
