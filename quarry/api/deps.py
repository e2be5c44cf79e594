"""
FastAPI dependencies shared by the routers.
"""
from __future__ import annotations

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User
from ..permissions.grants import load_permission_set
from ..permissions.policy import PermissionSet
from ..premium import PremiumFeatures
from ..services.users import authenticate_api_key
from ..utils.crypto import CryptoUtils


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="DB not initialized")
    async with db.session() as session:
        yield session


def get_premium_features(request: Request) -> PremiumFeatures:
    return request.app.state.premium


def get_crypto(request: Request) -> CryptoUtils:
    return request.app.state.crypto


async def get_current_user(
    x_api_key: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    crypto: CryptoUtils = Depends(get_crypto),
) -> User:
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")
    user = await authenticate_api_key(session, crypto, x_api_key)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")
    return user


async def get_permissions(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PermissionSet:
    return await load_permission_set(session, user)
