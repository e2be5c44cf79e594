from __future__ import annotations

from datetime import datetime, timezone

from ..utils.crypto import generate_entity_id

__all__ = ["utcnow", "generate_entity_id"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
