"""
Magic permissions groups and group membership.
"""
from __future__ import annotations

from typing import List

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..models import (
    SNIPPETS_NAMESPACE,
    CollectionPermission,
    CollectionPermissionLevel,
    PermissionsGroup,
    PermissionsGroupMembership,
    User,
)

logger = structlog.get_logger(__name__)

ALL_USERS = "All Users"
ADMINISTRATORS = "Administrators"

# Namespaces whose Root Collection All Users can curate out of the box
DEFAULT_ROOT_NAMESPACES = (None, SNIPPETS_NAMESPACE)


async def _get_or_create_group(session: AsyncSession, name: str) -> PermissionsGroup:
    result = await session.execute(select(PermissionsGroup).where(PermissionsGroup.name == name))
    group = result.scalars().first()
    if group is None:
        group = PermissionsGroup(name=name)
        session.add(group)
        await session.flush()
        logger.info("permissions_group_created", group=name, group_id=group.id)
    return group


async def all_users_group(session: AsyncSession) -> PermissionsGroup:
    return await _get_or_create_group(session, ALL_USERS)


async def admin_group(session: AsyncSession) -> PermissionsGroup:
    return await _get_or_create_group(session, ADMINISTRATORS)


async def ensure_default_groups(session: AsyncSession) -> None:
    """
    Create the magic groups; the first time All Users is created it also
    gets write access to the Root Collection of every default namespace.
    """
    existing = await session.execute(select(PermissionsGroup).where(PermissionsGroup.name == ALL_USERS))
    first_run = existing.scalars().first() is None

    all_users = await all_users_group(session)
    await admin_group(session)

    if first_run:
        for namespace in DEFAULT_ROOT_NAMESPACES:
            session.add(
                CollectionPermission(
                    group_id=all_users.id,
                    collection_id=None,
                    namespace=namespace,
                    level=CollectionPermissionLevel.WRITE,
                )
            )
    await session.flush()


async def add_user_to_group(session: AsyncSession, user: User, group: PermissionsGroup) -> None:
    result = await session.execute(
        select(PermissionsGroupMembership).where(
            PermissionsGroupMembership.user_id == user.id,
            PermissionsGroupMembership.group_id == group.id,
        )
    )
    if result.scalars().first() is None:
        session.add(PermissionsGroupMembership(user_id=user.id, group_id=group.id))
        await session.flush()


async def user_group_ids(session: AsyncSession, user: User) -> List[int]:
    result = await session.execute(
        select(PermissionsGroupMembership.group_id).where(PermissionsGroupMembership.user_id == user.id)
    )
    return list(result.scalars().all())
