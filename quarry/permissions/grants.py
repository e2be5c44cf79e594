"""
Granting, revoking and loading permissions.
"""
from __future__ import annotations

from typing import Dict, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..models import (
    Collection,
    CollectionPermission,
    CollectionPermissionLevel,
    CreateQueriesValue,
    DataPermission,
    DataPermissionType,
    PermissionsGroup,
    RootCollection,
    User,
)
from .groups import user_group_ids
from .policy import PermissionSet

logger = structlog.get_logger(__name__)

AnyCollection = Union[Collection, RootCollection]

_LEVEL_RANK = {CollectionPermissionLevel.READ: 1, CollectionPermissionLevel.WRITE: 2}


def _grant_filter(stmt, group: PermissionsGroup, collection: AnyCollection):
    stmt = stmt.where(CollectionPermission.group_id == group.id)
    if isinstance(collection, RootCollection):
        return stmt.where(
            CollectionPermission.collection_id.is_(None),
            CollectionPermission.namespace == collection.namespace,
        )
    return stmt.where(CollectionPermission.collection_id == collection.id)


async def revoke_collection_permissions(
    session: AsyncSession, group: PermissionsGroup, collection: AnyCollection
) -> int:
    result = await session.execute(_grant_filter(select(CollectionPermission), group, collection))
    revoked = 0
    for grant in result.scalars().all():
        await session.delete(grant)
        revoked += 1
    await session.flush()

    logger.info(
        "collection_permissions_revoked",
        group_id=group.id,
        collection_id=collection.id,
        namespace=collection.namespace,
        revoked=revoked,
    )
    return revoked


async def _grant(
    session: AsyncSession,
    group: PermissionsGroup,
    collection: AnyCollection,
    level: CollectionPermissionLevel,
) -> CollectionPermission:
    # A group holds at most one level per collection; a new grant replaces it
    result = await session.execute(_grant_filter(select(CollectionPermission), group, collection))
    for grant in result.scalars().all():
        await session.delete(grant)

    grant = CollectionPermission(
        group_id=group.id,
        collection_id=collection.id,
        namespace=collection.namespace,
        level=level,
    )
    session.add(grant)
    await session.flush()

    logger.info(
        "collection_permissions_granted",
        group_id=group.id,
        collection_id=collection.id,
        namespace=collection.namespace,
        level=level.value,
    )
    return grant


async def grant_collection_read_permissions(
    session: AsyncSession, group: PermissionsGroup, collection: AnyCollection
) -> CollectionPermission:
    return await _grant(session, group, collection, CollectionPermissionLevel.READ)


async def grant_collection_readwrite_permissions(
    session: AsyncSession, group: PermissionsGroup, collection: AnyCollection
) -> CollectionPermission:
    return await _grant(session, group, collection, CollectionPermissionLevel.WRITE)


async def set_database_permission(
    session: AsyncSession,
    group: PermissionsGroup,
    db_id: int,
    perm_type: DataPermissionType,
    value: Union[CreateQueriesValue, str],
) -> DataPermission:
    value = CreateQueriesValue(value)
    result = await session.execute(
        select(DataPermission).where(
            DataPermission.group_id == group.id,
            DataPermission.db_id == db_id,
            DataPermission.perm_type == perm_type,
        )
    )
    perm = result.scalars().first()
    if perm is None:
        perm = DataPermission(group_id=group.id, db_id=db_id, perm_type=perm_type, perm_value=value.value)
    else:
        perm.perm_value = value.value
    session.add(perm)
    await session.flush()

    logger.info(
        "database_permission_set",
        group_id=group.id,
        db_id=db_id,
        perm_type=perm_type.value,
        value=perm.perm_value,
    )
    return perm


def _best(
    current: Optional[CollectionPermissionLevel], candidate: CollectionPermissionLevel
) -> CollectionPermissionLevel:
    if current is None or _LEVEL_RANK[candidate] > _LEVEL_RANK[current]:
        return candidate
    return current


async def load_permission_set(session: AsyncSession, user: User) -> PermissionSet:
    """Flatten the grants of every group `user` belongs to."""
    if user.is_superuser:
        return PermissionSet(user_id=user.id, is_superuser=True)

    group_ids = await user_group_ids(session, user)
    if not group_ids:
        return PermissionSet(user_id=user.id)

    collections: Dict[int, CollectionPermissionLevel] = {}
    roots: Dict[Optional[str], CollectionPermissionLevel] = {}
    result = await session.execute(
        select(CollectionPermission).where(CollectionPermission.group_id.in_(group_ids))
    )
    for grant in result.scalars().all():
        level = CollectionPermissionLevel(grant.level)
        if grant.collection_id is None:
            roots[grant.namespace] = _best(roots.get(grant.namespace), level)
        else:
            collections[grant.collection_id] = _best(collections.get(grant.collection_id), level)

    result = await session.execute(
        select(DataPermission.db_id).where(
            DataPermission.group_id.in_(group_ids),
            DataPermission.perm_type == DataPermissionType.CREATE_QUERIES,
            DataPermission.perm_value == CreateQueriesValue.QUERY_BUILDER_AND_NATIVE.value,
        )
    )
    native_db_ids = frozenset(result.scalars().all())

    return PermissionSet(
        user_id=user.id,
        collections=collections,
        root_collections=roots,
        native_query_db_ids=native_db_ids,
    )
