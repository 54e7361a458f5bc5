import asyncio

import pytest

from hospidesk.backend import sql_backend
from hospidesk.core.errors import AuthError, NotFound
from hospidesk.db.models import Role, TicketStatus
from hospidesk.identity.credentials import CredentialRecord
from hospidesk.services.tickets import comments_query, tickets_query
from hospidesk.store.base import QuerySpec, comments_path


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'hospidesk.sqlite'}"


def _form(title):
    return {"title": title, "description": "d", "category": "network", "location": "Farmacia"}


def test_sql_store_queries_and_live_updates(db_url):
    async def main():
        backend = await sql_backend(db_url)
        store = backend.store
        try:
            for uid, name, role in (("ana", "Ana", Role.patient), ("luis", "Luis", Role.patient), ("it", "TI", Role.admin)):
                await store.set("users", uid, {"name": name, "email": f"{uid}@hospital.cl", "role": role.value, "sector": "S"})
            ana, luis, admin = [await backend.users.get_profile(u) for u in ("ana", "luis", "it")]
            assert admin.role == Role.admin

            t1 = await backend.tickets.create_ticket(ana, _form("Sin red"))
            t2 = await backend.tickets.create_ticket(luis, _form("Impresora"))
            t3 = await backend.tickets.create_ticket(ana, _form("Mouse"))
            assert t1.isdigit()

            seen = []
            sub = store.subscribe_query(tickets_query(ana.role, ana.id), seen.append)
            await store.drain()
            assert [d.id for d in seen[-1]] == [t3, t1]

            everything = await store.query(tickets_query(admin.role, admin.id, limit=2))
            assert [d.id for d in everything] == [t3, t2]

            # a write outside the query result does not notify
            deliveries = len(seen)
            await backend.tickets.set_status(admin, t2, TicketStatus.pending)
            assert len(seen) == deliveries

            await backend.tickets.set_status(admin, t1, TicketStatus.resolved)
            resolved = [d for d in seen[-1] if d.id == t1][0]
            assert resolved.get("status") == "resolved"
            assert resolved.get("resolved_at").tzinfo is not None

            filtered = await store.query(tickets_query(ana.role, ana.id, status=TicketStatus.resolved))
            assert [d.id for d in filtered] == [t1]

            sub.release()
            assert store.listener_count == 0
        finally:
            await backend.close()

    asyncio.run(main())


def test_sql_comments_cascade_with_ticket(db_url):
    async def main():
        backend = await sql_backend(db_url)
        store = backend.store
        try:
            await store.set("users", "ana", {"name": "Ana", "email": "ana@hospital.cl", "role": "patient"})
            await store.set("users", "it", {"name": "TI", "email": "it@hospital.cl", "role": "admin"})
            ana = await backend.users.get_profile("ana")
            admin = await backend.users.get_profile("it")

            tid = await backend.tickets.create_ticket(ana, _form("PC no enciende"))
            await backend.tickets.add_comment(admin, tid, {"content": "Revisando"})
            await backend.tickets.add_comment(ana, tid, {"content": "Gracias"})

            seen = []
            store.subscribe_query(comments_query(tid), seen.append)
            await store.drain()
            assert [d.get("content") for d in seen[-1]] == ["Revisando", "Gracias"]

            await backend.tickets.delete_ticket(admin, tid)
            assert len(seen[-1]) == 0
            assert await store.get("tickets", tid) is None
            assert len(await store.query(QuerySpec(comments_path(tid)))) == 0

            with pytest.raises(NotFound):
                await store.update("tickets", tid, {"status": "open"})
            assert await store.get("tickets", "not-a-number") is None
        finally:
            await backend.close()

    asyncio.run(main())


def test_sql_credentials_reject_duplicates(db_url):
    async def main():
        backend = await sql_backend(db_url)
        try:
            await backend.credentials.add(CredentialRecord("u1", "ana@hospital.cl", "hash"))
            with pytest.raises(AuthError) as exc:
                await backend.credentials.add(CredentialRecord("u2", "ana@hospital.cl", "hash"))
            assert exc.value.code == "email-already-in-use"

            principal = await backend.identity().sign_up("luis@hospital.cl", "secreto1")
            again = await backend.identity().sign_in("luis@hospital.cl", "secreto1")
            assert again.uid == principal.uid
        finally:
            await backend.close()

    asyncio.run(main())
