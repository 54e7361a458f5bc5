import asyncio

import pytest

from hospidesk.db.models import Role
from hospidesk.scripts.bootstrap_admin import ensure_admin


def test_creates_admin_account(backend):
    async def main():
        uid = await ensure_admin(backend, email=" TI@Hospital.cl ", password="admin123", name="Soporte TI", sector="Informática")
        profile = await backend.users.get_profile(uid)
        assert profile.role == Role.admin and profile.email == "ti@hospital.cl"
        principal = await backend.identity().sign_in("ti@hospital.cl", "admin123")
        assert principal.uid == uid

        # second run changes nothing
        assert await ensure_admin(backend, email="ti@hospital.cl", password=None, name="x", sector="y") == uid
        assert (await backend.users.get_profile(uid)).name == "Soporte TI"

    asyncio.run(main())


def test_promotes_existing_patient(backend):
    async def main():
        principal = await backend.identity().sign_up("ana@hospital.cl", "secreto1")
        await backend.users.create_profile(principal, name="Ana", sector="Urgencias")
        await ensure_admin(backend, email="ana@hospital.cl", password=None, name="Ana", sector="Urgencias")
        profile = await backend.users.get_profile(principal.uid)
        assert profile.role == Role.admin and profile.sector == "Urgencias"

    asyncio.run(main())


def test_new_account_needs_password(backend):
    with pytest.raises(ValueError):
        asyncio.run(ensure_admin(backend, email="x@hospital.cl", password=None, name="X", sector="Y"))
