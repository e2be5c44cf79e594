from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from .base import utcnow


class User(SQLModel, table=True):
    __tablename__ = "core_user"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    first_name: Optional[str] = Field(default=None)
    last_name: Optional[str] = Field(default=None)
    is_superuser: bool = Field(default=False)
    is_active: bool = Field(default=True)

    # HMAC of the user's API key, never the key itself
    api_key_hash: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=utcnow)


class PermissionsGroup(SQLModel, table=True):
    """
    A set of users that permissions are granted to.

    `All Users` and `Administrators` always exist; see
    `quarry.permissions.groups.ensure_default_groups`.
    """

    __tablename__ = "permissions_group"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)


class PermissionsGroupMembership(SQLModel, table=True):
    __tablename__ = "permissions_group_membership"
    __table_args__ = (UniqueConstraint("user_id", "group_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="core_user.id", index=True)
    group_id: int = Field(foreign_key="permissions_group.id", index=True)
