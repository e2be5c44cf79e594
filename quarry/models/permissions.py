from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class CollectionPermissionLevel(str, Enum):
    READ = "read"
    WRITE = "write"


class DataPermissionType(str, Enum):
    CREATE_QUERIES = "perms/create-queries"


class CreateQueriesValue(str, Enum):
    NO = "no"
    QUERY_BUILDER = "query-builder"
    QUERY_BUILDER_AND_NATIVE = "query-builder-and-native"


class CollectionPermission(SQLModel, table=True):
    """
    A group's access to one collection.

    Rows with `collection_id = NULL` are grants on the Root Collection of
    `namespace`; for every other row `namespace` mirrors the collection's.
    Grants are flat: access to a collection says nothing about its children.
    """

    __tablename__ = "collection_permission"

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="permissions_group.id", index=True)
    collection_id: Optional[int] = Field(default=None, foreign_key="collection.id", index=True)
    namespace: Optional[str] = Field(default=None, index=True)
    level: CollectionPermissionLevel


class DataPermission(SQLModel, table=True):
    __tablename__ = "data_permissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="permissions_group.id", index=True)
    db_id: int = Field(foreign_key="query_database.id", index=True)
    perm_type: DataPermissionType = Field(index=True)
    perm_value: str
