from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field, Column, JSON

from .base import utcnow


class AuditLog(SQLModel, table=True):
    """
    One audited action, e.g. `snippet-create` or `snippet-update`.
    """

    __tablename__ = "audit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    topic: str = Field(index=True)
    user_id: Optional[int] = Field(default=None, index=True)
    model: Optional[str] = Field(default=None, index=True)
    model_id: Optional[int] = Field(default=None, index=True)
    timestamp: datetime = Field(default_factory=utcnow, index=True)

    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
