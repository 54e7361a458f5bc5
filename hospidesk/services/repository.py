# hospidesk/services/repository.py
"""
Repository gate.

Every write of the application goes through here, both from the screen models
and from the HTTP gateway, so the role checks hold on every access path. Role
checks run before the store is touched for writing.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from hospidesk.core.errors import (
    FormValidationError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from hospidesk.db.models import Role, TicketPriority, TicketStatus
from hospidesk.identity.base import Principal
from hospidesk.schemas.comments import Comment, CommentCreate
from hospidesk.schemas.tickets import Ticket, TicketCreate, TicketUpdate
from hospidesk.schemas.users import ProfileUpdate, UserProfile
from hospidesk.services import tickets as rules
from hospidesk.store.base import SERVER_TIMESTAMP, DocumentStore, comments_path

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def validate_form(model: type[M], data: Union[M, Mapping[str, Any]], message: str | None = None) -> M:
    """Form -> model, or FormValidationError before any backend call."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        log.debug("form %s rejected: %s", model.__name__, fields)
        raise FormValidationError(message) from e


def _require_user(actor: Optional[UserProfile]) -> UserProfile:
    if actor is None or actor.role is None:
        raise PermissionDenied("Debes iniciar sesión.")
    return actor


def _require_admin(actor: Optional[UserProfile]) -> UserProfile:
    actor = _require_user(actor)
    if not rules.can_manage(actor.role):
        log.warning("user %s tried an admin-only action", actor.id)
        raise PermissionDenied()
    return actor


class TicketRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def _load(self, ticket_id: str) -> Ticket:
        doc = await self.store.get(rules.TICKETS, ticket_id)
        if doc is None:
            raise NotFound("Ticket no encontrado")
        return Ticket.from_document(doc)

    async def get_ticket(self, actor: Optional[UserProfile], ticket_id: str) -> Ticket:
        actor = _require_user(actor)
        ticket = await self._load(ticket_id)
        if not rules.can_view(actor.role, actor.id, ticket.created_by):
            raise PermissionDenied()
        return ticket

    async def list_tickets(
        self,
        actor: Optional[UserProfile],
        *,
        status: Optional[TicketStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Ticket]:
        actor = _require_user(actor)
        snap = await self.store.query(rules.tickets_query(actor.role, actor.id, status=status, limit=limit))
        return [Ticket.from_document(d) for d in snap]

    async def create_ticket(self, actor: Optional[UserProfile], form: Union[TicketCreate, Mapping[str, Any]]) -> str:
        """
        Creates a ticket in `open` with priority `medium`; creator id/name come
        from the acting session only.
        """
        actor = _require_user(actor)
        payload = validate_form(
            TicketCreate, form, "Por favor completa todos los campos obligatorios (*)."
        )
        ticket_id = await self.store.add(rules.TICKETS, {
            "title": payload.title,
            "description": payload.description,
            "category": payload.category.value,
            "priority": rules.INITIAL_PRIORITY.value,
            "status": rules.INITIAL_STATUS.value,
            "created_by": actor.id,
            "created_by_name": actor.name,
            "location": payload.location,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
            "resolved_at": None,
        })
        log.info("ticket %s created by %s", ticket_id, actor.id)
        return ticket_id

    async def set_status(self, actor: Optional[UserProfile], ticket_id: str, status: TicketStatus) -> None:
        await self.update_ticket(actor, ticket_id, TicketUpdate(status=TicketStatus(status)))

    async def set_priority(self, actor: Optional[UserProfile], ticket_id: str, priority: TicketPriority) -> None:
        await self.update_ticket(actor, ticket_id, TicketUpdate(priority=TicketPriority(priority)))

    async def update_ticket(self, actor: Optional[UserProfile], ticket_id: str, payload: TicketUpdate) -> Ticket:
        """
        Applies status and priority in a single write. The transition is
        checked first, so a rejected status leaves the priority untouched too.
        """
        actor = _require_admin(actor)
        ticket = await self._load(ticket_id)
        fields: dict[str, Any] = {}
        if payload.status is not None:
            status = TicketStatus(payload.status)
            if not rules.can_transition(ticket.status, status):
                raise InvalidTransition(
                    f"No se puede pasar de '{ticket.status.value}' a '{status.value}'."
                )
            fields["status"] = status.value
            if status == TicketStatus.resolved:
                fields["resolved_at"] = SERVER_TIMESTAMP
        if payload.priority is not None:
            fields["priority"] = TicketPriority(payload.priority).value
        if not fields:
            return ticket
        fields["updated_at"] = SERVER_TIMESTAMP
        await self.store.update(rules.TICKETS, ticket_id, fields)
        if "status" in fields:
            log.info("ticket %s: %s -> %s by %s", ticket_id, ticket.status.value, fields["status"], actor.id)
        if "priority" in fields:
            log.info("ticket %s priority -> %s by %s", ticket_id, fields["priority"], actor.id)
        return await self._load(ticket_id)

    async def delete_ticket(self, actor: Optional[UserProfile], ticket_id: str) -> None:
        actor = _require_admin(actor)
        await self._load(ticket_id)
        await self.store.delete(rules.TICKETS, ticket_id)
        log.info("ticket %s deleted by %s", ticket_id, actor.id)

    # ==== comments (append-only) ====

    async def add_comment(
        self,
        actor: Optional[UserProfile],
        ticket_id: str,
        form: Union[CommentCreate, Mapping[str, Any]],
    ) -> str:
        actor = _require_user(actor)
        payload = validate_form(CommentCreate, form, "El comentario no puede estar vacío.")
        ticket = await self._load(ticket_id)
        if not rules.can_comment(actor.role, actor.id, ticket.created_by):
            raise PermissionDenied()
        comment_id = await self.store.add(comments_path(ticket_id), {
            "user_id": actor.id,
            "user_name": actor.name,
            "content": payload.content,
            "created_at": SERVER_TIMESTAMP,
        })
        log.info("comment %s on ticket %s by %s", comment_id, ticket_id, actor.id)
        return comment_id

    async def list_comments(self, actor: Optional[UserProfile], ticket_id: str) -> list[Comment]:
        await self.get_ticket(actor, ticket_id)
        snap = await self.store.query(rules.comments_query(ticket_id))
        return [Comment.from_document(d) for d in snap]


class UserRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_profile(self, uid: str) -> Optional[UserProfile]:
        doc = await self.store.get(rules.USERS, uid)
        return UserProfile.from_document(doc) if doc is not None else None

    async def create_profile(self, principal: Principal, *, name: str, sector: str) -> None:
        """
        Profile of a self-registered account; the role is always `patient`.
        """
        await self.store.set(rules.USERS, principal.uid, {
            "name": name,
            "email": principal.email,
            "role": Role.patient.value,
            "sector": sector,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })
        log.info("profile created for %s", principal.uid)

    async def update_profile(
        self,
        actor: Optional[UserProfile],
        form: Union[ProfileUpdate, Mapping[str, Any]],
    ) -> None:
        actor = _require_user(actor)
        payload = validate_form(ProfileUpdate, form, "El nombre y el sector son obligatorios.")
        await self.store.update(rules.USERS, actor.id, {
            "name": payload.name,
            "sector": payload.sector,
            "updated_at": SERVER_TIMESTAMP,
        })

    async def list_users(self, actor: Optional[UserProfile]) -> list[UserProfile]:
        _require_admin(actor)
        snap = await self.store.query(rules.users_query())
        return [UserProfile.from_document(d) for d in snap]
