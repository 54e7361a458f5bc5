from datetime import datetime, timedelta, timezone

import pytest

from hospidesk.backend import Backend
from hospidesk.db.models import Role
from hospidesk.identity.credentials import MemoryCredentialStore
from hospidesk.schemas.users import UserProfile
from hospidesk.services.tickets import USERS
from hospidesk.store.memory import MemoryDocumentStore


class TickingClock:
    """Every call is one second later, so created_at never ties."""

    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def backend(clock):
    return Backend(store=MemoryDocumentStore(clock=clock), credentials=MemoryCredentialStore())


@pytest.fixture
def store(backend):
    return backend.store


@pytest.fixture
def make_profile(store):
    """Writes a profile document directly (no credentials) and returns it typed."""

    async def _make(uid: str, name: str, role=Role.patient, sector: str = "Urgencias") -> UserProfile:
        await store.set(USERS, uid, {
            "name": name,
            "email": f"{uid}@hospital.cl",
            "role": getattr(role, "value", role),
            "sector": sector,
        })
        return UserProfile.from_document(await store.get(USERS, uid))

    return _make


def ticket_form(**overrides):
    form = {
        "title": "PC no enciende",
        "description": "El equipo de admisión no da imagen",
        "category": "hardware",
        "location": "Box 5",
    }
    form.update(overrides)
    return form


@pytest.fixture
def form():
    return ticket_form
