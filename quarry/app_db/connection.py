"""
Application database engine and sessions.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Union

import structlog
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from .. import models  # noqa: F401  (registers tables on SQLModel.metadata)
from ..config import QuarrySettings
from .spec import sqlalchemy_url

logger = structlog.get_logger(__name__)


class AppDatabase:
    def __init__(self, url: Union[str, URL], echo: bool = False) -> None:
        self.url = url
        self.engine = create_async_engine(url, echo=echo)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: QuarrySettings) -> "AppDatabase":
        if settings.database_url:
            return cls(settings.database_url)
        return cls(sqlalchemy_url(settings.app_db_type, settings.app_db_options()))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._sessionmaker() as session:
            yield session

    async def init_models(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("app_db_models_initialized", dialect=self.engine.dialect.name)

    async def dispose(self) -> None:
        await self.engine.dispose()
