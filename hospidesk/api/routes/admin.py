# hospidesk/api/routes/admin.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from hospidesk.api.deps import BackendDep, require_admin
from hospidesk.schemas.users import UserProfile
from hospidesk.services.reports import latest_report

router = APIRouter()


@router.get("/report")
async def report(backend: BackendDep, current: UserProfile = Depends(require_admin())) -> dict[str, Any]:
    tickets = await backend.tickets.list_tickets(current)
    return latest_report(tickets)
