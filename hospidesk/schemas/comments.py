from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from hospidesk.store.base import Document

class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1, max_length=10_000)

class Comment(BaseModel):
    id: str
    user_id: str
    user_name: str
    content: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Document) -> "Comment":
        return cls.model_validate({**doc.data, "id": doc.id})
