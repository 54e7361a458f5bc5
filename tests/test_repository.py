import asyncio

import pytest

from hospidesk.core.errors import FormValidationError, InvalidTransition, NotFound, PermissionDenied
from hospidesk.db.models import Role, TicketPriority, TicketStatus
from hospidesk.schemas.tickets import TicketUpdate
from hospidesk.store.base import QuerySpec


@pytest.fixture
def people(make_profile):
    async def _people():
        ana = await make_profile("ana", "Ana Pérez")
        luis = await make_profile("luis", "Luis Soto", sector="Pabellón")
        admin = await make_profile("it", "Soporte TI", role=Role.admin, sector="Informática")
        return ana, luis, admin

    return _people


def test_creation_stamps_initial_state_and_creator(backend, people, form):
    async def main():
        ana, _, _ = await people()
        tid = await backend.tickets.create_ticket(ana, form(
            status="resolved",
            priority="high",
            created_by="someone-else",
            created_by_name="Mallory",
        ))
        return await backend.tickets.get_ticket(ana, tid)

    ticket = asyncio.run(main())
    assert ticket.status == TicketStatus.open
    assert ticket.priority == TicketPriority.medium
    assert ticket.created_by == "ana"
    assert ticket.created_by_name == "Ana Pérez"
    assert ticket.location == "Box 5"
    assert ticket.created_at is not None and ticket.resolved_at is None


def test_incomplete_form_writes_nothing(backend, store, people, form):
    async def main():
        ana, _, _ = await people()
        with pytest.raises(FormValidationError) as exc:
            await backend.tickets.create_ticket(ana, form(location="  "))
        assert exc.value.message == "Por favor completa todos los campos obligatorios (*)."
        assert len(await store.query(QuerySpec("tickets"))) == 0

    asyncio.run(main())


def test_signed_out_actor_cannot_create(backend, form):
    with pytest.raises(PermissionDenied):
        asyncio.run(backend.tickets.create_ticket(None, form()))


def test_lists_are_role_scoped(backend, people, form):
    async def main():
        ana, luis, admin = await people()
        a1 = await backend.tickets.create_ticket(ana, form(title="Impresora atascada"))
        l1 = await backend.tickets.create_ticket(luis, form(title="Sin red"))
        a2 = await backend.tickets.create_ticket(ana, form(title="Mouse roto"))

        mine = await backend.tickets.list_tickets(ana)
        assert [t.id for t in mine] == [a2, a1]
        assert all(t.created_by == "ana" for t in mine)

        everything = await backend.tickets.list_tickets(admin)
        assert {t.id for t in everything} == {a1, l1, a2}

        with pytest.raises(PermissionDenied):
            await backend.tickets.get_ticket(luis, a1)

    asyncio.run(main())


def test_patient_status_change_rejected_without_mutation(backend, store, people, form):
    async def main():
        ana, _, _ = await people()
        tid = await backend.tickets.create_ticket(ana, form())
        before = await store.get("tickets", tid)
        with pytest.raises(PermissionDenied):
            await backend.tickets.set_status(ana, tid, TicketStatus.resolved)
        with pytest.raises(PermissionDenied):
            await backend.tickets.set_priority(ana, tid, TicketPriority.high)
        with pytest.raises(PermissionDenied):
            await backend.tickets.delete_ticket(ana, tid)
        assert await store.get("tickets", tid) == before

    asyncio.run(main())


def test_admin_moves_ticket_along_lifecycle(backend, people, form):
    async def main():
        ana, _, admin = await people()
        tid = await backend.tickets.create_ticket(ana, form())

        await backend.tickets.set_status(admin, tid, TicketStatus.in_progress)
        await backend.tickets.set_priority(admin, tid, TicketPriority.high)
        await backend.tickets.set_status(admin, tid, TicketStatus.resolved)
        ticket = await backend.tickets.get_ticket(admin, tid)
        assert ticket.status == TicketStatus.resolved
        assert ticket.priority == TicketPriority.high
        assert ticket.resolved_at is not None

        with pytest.raises(InvalidTransition):
            await backend.tickets.set_status(admin, tid, TicketStatus.open)

    asyncio.run(main())


def test_rejected_transition_leaves_priority_untouched(backend, store, people, form):
    async def main():
        ana, _, admin = await people()
        tid = await backend.tickets.create_ticket(ana, form())
        before = await store.get("tickets", tid)
        with pytest.raises(InvalidTransition):
            await backend.tickets.update_ticket(admin, tid, TicketUpdate(priority="high", status="closed"))
        assert await store.get("tickets", tid) == before

        ticket = await backend.tickets.update_ticket(admin, tid, TicketUpdate(priority="high", status="pending"))
        assert (ticket.status, ticket.priority) == (TicketStatus.pending, TicketPriority.high)

    asyncio.run(main())


def test_comments_oldest_first_and_creator_only(backend, people, form):
    async def main():
        ana, luis, admin = await people()
        tid = await backend.tickets.create_ticket(ana, form())
        await backend.tickets.add_comment(ana, tid, {"content": "No prende desde ayer"})
        await backend.tickets.add_comment(admin, tid, {"content": "Revisando"})
        await backend.tickets.add_comment(ana, tid, {"content": "Gracias"})

        comments = await backend.tickets.list_comments(ana, tid)
        assert [c.content for c in comments] == ["No prende desde ayer", "Revisando", "Gracias"]
        stamps = [c.created_at for c in comments]
        assert stamps == sorted(stamps)
        assert comments[1].user_name == "Soporte TI"

        with pytest.raises(PermissionDenied):
            await backend.tickets.add_comment(luis, tid, {"content": "hola"})
        with pytest.raises(FormValidationError):
            await backend.tickets.add_comment(ana, tid, {"content": "   "})

    asyncio.run(main())


def test_delete_ticket(backend, people, form):
    async def main():
        ana, _, admin = await people()
        tid = await backend.tickets.create_ticket(ana, form())
        await backend.tickets.add_comment(ana, tid, {"content": "x"})
        await backend.tickets.delete_ticket(admin, tid)
        with pytest.raises(NotFound):
            await backend.tickets.get_ticket(admin, tid)

    asyncio.run(main())


def test_profile_update_and_user_listing(backend, people):
    async def main():
        ana, _, admin = await people()
        await backend.users.update_profile(ana, {"name": " Ana P. ", "sector": "Farmacia"})
        profile = await backend.users.get_profile("ana")
        assert (profile.name, profile.sector) == ("Ana P.", "Farmacia")
        assert profile.role == Role.patient

        with pytest.raises(FormValidationError):
            await backend.users.update_profile(ana, {"name": "", "sector": "Farmacia"})
        with pytest.raises(PermissionDenied):
            await backend.users.list_users(ana)
        assert {u.id for u in await backend.users.list_users(admin)} == {"ana", "luis", "it"}

    asyncio.run(main())
