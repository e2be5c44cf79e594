from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .base import generate_entity_id, utcnow


class NativeQuerySnippet(SQLModel, table=True):
    """
    A named, reusable fragment of native query text.

    `collection_id = NULL` places the snippet in the Root Collection of the
    `snippets` namespace.
    """

    __tablename__ = "native_query_snippet"

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_id: str = Field(default_factory=generate_entity_id, unique=True, index=True)
    name: str = Field(unique=True, index=True)
    description: Optional[str] = Field(default=None)
    content: str
    creator_id: int = Field(foreign_key="core_user.id", index=True)
    archived: bool = Field(default=False, index=True)
    collection_id: Optional[int] = Field(default=None, foreign_key="collection.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
