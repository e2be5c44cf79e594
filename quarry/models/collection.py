from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .base import generate_entity_id, utcnow

SNIPPETS_NAMESPACE = "snippets"


class Collection(SQLModel, table=True):
    """
    A folder of content that doubles as a permission scope.

    `location` is the materialized path of ancestor ids: `/` for a child of
    the Root Collection, `/1/2/` for a grandchild of collection 1.
    `namespace` separates trees; snippet folders live in `snippets`.
    """

    __tablename__ = "collection"

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_id: str = Field(default_factory=generate_entity_id, unique=True, index=True)
    name: str
    description: Optional[str] = Field(default=None)
    namespace: Optional[str] = Field(default=None, index=True)
    location: str = Field(default="/", index=True)
    archived: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow)


@dataclass(frozen=True)
class RootCollection:
    """The implicit top of a namespace's collection tree; it has no row."""

    namespace: Optional[str] = None
    name: str = "Root Collection"
    id: None = None
    location: None = None
    archived: bool = False

    @property
    def entity_id(self) -> None:
        return None
