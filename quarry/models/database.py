from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .base import utcnow


class Database(SQLModel, table=True):
    """
    A warehouse users query against (not the application database).

    `details` holds the connection details as JSON text, encrypted with
    `CryptoUtils` when ENCRYPTION_SECRET_KEY is configured.
    """

    __tablename__ = "query_database"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    engine: str
    details: str = Field(default="{}")
    created_at: datetime = Field(default_factory=utcnow)
