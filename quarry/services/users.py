"""
Users and API-key authentication.
"""
from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..exceptions import InvalidRequestError
from ..models import User
from ..permissions.groups import add_user_to_group, admin_group, all_users_group
from ..utils.crypto import CryptoUtils

logger = structlog.get_logger(__name__)


async def create_user(
    session: AsyncSession,
    crypto: CryptoUtils,
    email: str,
    api_key: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    is_superuser: bool = False,
) -> User:
    """Create a user in All Users (and Administrators for superusers)."""
    existing = await session.execute(select(User.id).where(User.email == email))
    if existing.scalars().first() is not None:
        raise InvalidRequestError(f"A user with email {email!r} already exists")

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        is_superuser=is_superuser,
        api_key_hash=crypto.hash_api_key(api_key),
    )
    session.add(user)
    await session.flush()

    await add_user_to_group(session, user, await all_users_group(session))
    if is_superuser:
        await add_user_to_group(session, user, await admin_group(session))

    logger.info("user_created", user_id=user.id, is_superuser=is_superuser)
    return user


async def authenticate_api_key(session: AsyncSession, crypto: CryptoUtils, api_key: str) -> Optional[User]:
    key_hash = crypto.hash_api_key(api_key)
    result = await session.execute(
        select(User).where(User.api_key_hash == key_hash, User.is_active == True)  # noqa: E712
    )
    return result.scalars().first()
