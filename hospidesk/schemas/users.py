# hospidesk/schemas/users.py
from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hospidesk.db.models import Role
from hospidesk.store.base import Document

log = logging.getLogger(__name__)


class UserProfile(BaseModel):
    """The `users/<uid>` document as the app sees it."""

    id: str
    name: str = ""
    email: str = ""
    role: Role | None = None
    sector: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _unknown_role_is_none(cls, v):
        if v is None or isinstance(v, Role):
            return v
        try:
            return Role(v)
        except ValueError:
            log.warning("profile with unknown role %r", v)
            return None

    @classmethod
    def from_document(cls, doc: Document) -> "UserProfile":
        return cls.model_validate({**doc.data, "id": doc.id})

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    sector: str = Field(min_length=1, max_length=255)


class UsersPage(BaseModel):
    items: list[UserProfile]
    total: int
