"""
Warehouse databases and their (encrypted) connection details.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Database
from ..utils.crypto import CryptoUtils

logger = structlog.get_logger(__name__)


async def create_database(
    session: AsyncSession,
    crypto: CryptoUtils,
    name: str,
    engine: str,
    details: Dict[str, Any],
) -> Database:
    database = Database(name=name, engine=engine, details=crypto.encrypt(json.dumps(details)))
    session.add(database)
    await session.flush()
    logger.info("database_created", db_id=database.id, engine=engine, encrypted=crypto.can_encrypt)
    return database


def database_details(crypto: CryptoUtils, database: Database) -> Dict[str, Any]:
    return json.loads(crypto.decrypt(database.details))
