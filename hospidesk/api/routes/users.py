# hospidesk/api/routes/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from hospidesk.api.deps import BackendDep, UserDep
from hospidesk.schemas.users import ProfileUpdate, UserProfile, UsersPage

router = APIRouter()

# ---------- SELF ----------
@router.get("/me", response_model=UserProfile)
async def get_me(current: UserDep):
    return current

@router.patch("/me", response_model=UserProfile)
async def update_me(payload: ProfileUpdate, backend: BackendDep, current: UserDep):
    await backend.users.update_profile(current, payload)
    return await backend.users.get_profile(current.id)

# ---------- ADMIN ----------
@router.get("", response_model=UsersPage)
async def list_users(
    backend: BackendDep,
    current: UserDep,
    q: Optional[str] = Query(None, description="search by name/sector"),
):
    # role check lives in the repository
    users = await backend.users.list_users(current)
    if q:
        needle = q.strip().lower()
        users = [u for u in users if needle in u.name.lower() or needle in (u.sector or "").lower()]
    return UsersPage(items=users, total=len(users))
