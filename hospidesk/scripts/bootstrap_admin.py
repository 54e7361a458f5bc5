"""
Out-of-band creation/promotion of the administrator account.

Self-registration only ever yields patients; this is the one place that
writes role=admin.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from hospidesk.backend import Backend, sql_backend
from hospidesk.core.config import settings
from hospidesk.core.errors import AuthError
from hospidesk.core.logging import setup_logging
from hospidesk.db.models import Role
from hospidesk.identity.local import normalize_email
from hospidesk.services.tickets import USERS
from hospidesk.store.base import SERVER_TIMESTAMP

log = logging.getLogger(__name__)


# ---------- helpers ----------
async def ensure_admin(
    backend: Backend,
    *,
    email: str,
    password: Optional[str],
    name: str,
    sector: str,
) -> str:
    """
    Creates the account if missing (password required), then writes or
    promotes its profile to admin. Returns the account uid.
    """
    email = normalize_email(email)
    record = await backend.credentials.get_by_email(email)

    if record is None:
        if not password:
            raise ValueError(f"no password given for new account {email}")
        principal = await backend.identity().sign_up(email, password)
        uid = principal.uid
        log.info("[bootstrap] account created: %s", email)
    else:
        uid = record.uid

    profile = await backend.users.get_profile(uid)
    if profile is None:
        await backend.store.set(USERS, uid, {
            "name": name,
            "email": email,
            "role": Role.admin.value,
            "sector": sector,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })
        log.info("[bootstrap] admin profile created: %s", email)
    elif profile.role != Role.admin:
        await backend.store.update(USERS, uid, {"role": Role.admin.value, "updated_at": SERVER_TIMESTAMP})
        log.info("[bootstrap] promoted to admin: %s", email)
    else:
        log.info("[bootstrap] already admin, unchanged: %s", email)
    return uid


async def _run(*, database_url: str, email: str, password: str, name: str, sector: str) -> None:
    backend = await sql_backend(database_url)
    try:
        await ensure_admin(backend, email=email, password=password, name=name, sector=sector)
    finally:
        await backend.close()


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create or promote the admin account")
    p.add_argument("email", nargs="?", default=settings.admin_email, help="Admin email")
    p.add_argument("password", nargs="?", default=settings.admin_password, help="Admin password (new accounts only)")
    p.add_argument("-n", "--name", default=settings.admin_name, help="Display name")
    p.add_argument("-s", "--sector", default=settings.admin_sector, help="Sector")
    p.add_argument("--database-url", default=settings.database_url, help="SQLAlchemy async URL")
    return p.parse_args()


def main() -> None:
    setup_logging(settings.log_level)
    args = _parse_args()

    if not args.email:
        raise SystemExit("error: admin email missing (argument or ADMIN_EMAIL in .env)")

    try:
        asyncio.run(
            _run(
                database_url=args.database_url,
                email=args.email,
                password=args.password,
                name=args.name,
                sector=args.sector,
            )
        )
    except AuthError as e:
        raise SystemExit(f"error: {e.message}") from e


if __name__ == "__main__":
    main()
