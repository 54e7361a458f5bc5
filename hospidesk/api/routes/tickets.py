# hospidesk/api/routes/tickets.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import Response

from hospidesk.api.deps import BackendDep, UserDep
from hospidesk.core.logging import log_extra
from hospidesk.db.models import TicketStatus
from hospidesk.schemas.tickets import Ticket, TicketCreate, TicketUpdate

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("", response_model=Ticket, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreate, backend: BackendDep, current: UserDep, request: Request):
    ticket_id = await backend.tickets.create_ticket(current, payload)
    log.info("ticket %s created", ticket_id, extra=log_extra(request))
    return await backend.tickets.get_ticket(current, ticket_id)


@router.get("", response_model=list[Ticket])
async def list_tickets(
    backend: BackendDep,
    current: UserDep,
    status_: TicketStatus | None = Query(default=None, alias="status"),
    limit: int | None = Query(default=None, ge=1, le=500),
):
    # role scope (creator == self unless admin) is applied by the store query
    return await backend.tickets.list_tickets(current, status=status_, limit=limit)


@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(ticket_id: str, backend: BackendDep, current: UserDep):
    return await backend.tickets.get_ticket(current, ticket_id)


@router.patch("/{ticket_id}", response_model=Ticket)
async def patch_ticket(ticket_id: str, payload: TicketUpdate, backend: BackendDep, current: UserDep):
    # admin only: status and/or priority
    return await backend.tickets.update_ticket(current, ticket_id, payload)


@router.delete("/{ticket_id}", status_code=204)
async def delete_ticket(ticket_id: str, backend: BackendDep, current: UserDep):
    await backend.tickets.delete_ticket(current, ticket_id)
    return Response(status_code=204)
