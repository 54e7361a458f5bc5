# hospidesk/schemas/tickets.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from hospidesk.db.models import TicketCategory, TicketPriority, TicketStatus
from hospidesk.store.base import Document


class TicketCreate(BaseModel):
    # unknown keys (status, priority, created_by...) are dropped on purpose:
    # those are stamped by the repository
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: TicketCategory = TicketCategory.hardware
    location: str = Field(..., min_length=1, max_length=255)


class TicketUpdate(BaseModel):
    # admin-only fields; each one optional, changed independently
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None


class Ticket(BaseModel):
    id: str
    title: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    created_by: str
    created_by_name: str
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Document) -> "Ticket":
        return cls.model_validate({**doc.data, "id": doc.id})
