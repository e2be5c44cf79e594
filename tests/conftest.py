"""
Pytest configuration and shared fixtures for all tests.
"""
import uuid
from types import SimpleNamespace
from typing import Optional

import httpx
import pytest

from quarry.app_db import AppDatabase
from quarry.config import QuarrySettings
from quarry.main import bootstrap, create_app
from quarry.models import (
    SNIPPETS_NAMESPACE,
    CreateQueriesValue,
    DataPermissionType,
    NativeQuerySnippet,
    RootCollection,
)
from quarry.permissions import (
    all_users_group,
    grant_collection_read_permissions,
    grant_collection_readwrite_permissions,
    revoke_collection_permissions,
    set_database_permission,
)
from quarry.services.collections import create_collection
from quarry.services.databases import create_database
from quarry.services.users import create_user
from quarry.utils.crypto import CryptoUtils

RASTA_KEY = "rasta-api-key"
CROWBERTO_KEY = "crowberto-api-key"

SNIPPETS_ROOT = RootCollection(namespace=SNIPPETS_NAMESPACE)


@pytest.fixture
def settings(tmp_path):
    """Test settings backed by a throwaway SQLite file."""
    return QuarrySettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'quarry-test.db'}",
        api_key_secret="test-secret",
        premium_features=[],
    )


@pytest.fixture
def crypto(settings):
    return CryptoUtils.from_settings(settings)


@pytest.fixture
async def db(settings):
    database = AppDatabase(settings.database_url)
    await bootstrap(database)
    yield database
    await database.dispose()


@pytest.fixture
async def users(db, crypto):
    """`rasta` is a regular user, `crowberto` an admin."""
    async with db.session() as session:
        rasta = await create_user(session, crypto, "rasta@example.com", RASTA_KEY, "Rasta", "Toucan")
        crowberto = await create_user(
            session, crypto, "crowberto@example.com", CROWBERTO_KEY, "Crowberto", "Corv", is_superuser=True
        )
        await session.commit()
    return SimpleNamespace(rasta=rasta, crowberto=crowberto)


@pytest.fixture
async def sample_database(db, crypto):
    async with db.session() as session:
        database = await create_database(session, crypto, "test-data", "postgres", {"host": "warehouse"})
        await session.commit()
    return database


@pytest.fixture
def app(settings, db):
    return create_app(settings, db=db)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def premium(app):
    """The app's PremiumFeatures; use `with premium.override({...}):`."""
    return app.state.premium


# -------------------------
# Helpers
# -------------------------


async def user_request(client, api_key, method, url, **kwargs):
    return await client.request(method, url, headers={"X-Api-Key": api_key}, **kwargs)


def random_name() -> str:
    return f"snippet-{uuid.uuid4().hex[:12]}"


async def grant(db, level: str, collection) -> None:
    async with db.session() as session:
        group = await all_users_group(session)
        if level == "read":
            await grant_collection_read_permissions(session, group, collection)
        else:
            await grant_collection_readwrite_permissions(session, group, collection)
        await session.commit()


async def revoke(db, collection) -> None:
    async with db.session() as session:
        await revoke_collection_permissions(session, await all_users_group(session), collection)
        await session.commit()


async def allow_native_queries(db, database_id: int) -> None:
    async with db.session() as session:
        await set_database_permission(
            session,
            await all_users_group(session),
            database_id,
            DataPermissionType.CREATE_QUERIES,
            CreateQueriesValue.QUERY_BUILDER_AND_NATIVE,
        )
        await session.commit()


async def make_collection(db, name: str, namespace: Optional[str] = SNIPPETS_NAMESPACE, parent=None):
    async with db.session() as session:
        collection = await create_collection(session, name, namespace=namespace, parent=parent)
        await session.commit()
    return collection


async def make_snippet(db, creator_id: int, collection_id: Optional[int] = None, **kwargs):
    kwargs.setdefault("name", random_name())
    kwargs.setdefault("content", "WHERE price > 10")
    async with db.session() as session:
        snippet = NativeQuerySnippet(creator_id=creator_id, collection_id=collection_id, **kwargs)
        session.add(snippet)
        await session.commit()
    return snippet


async def set_snippet_collection(db, snippet_id: int, collection_id: Optional[int]) -> None:
    async with db.session() as session:
        snippet = await session.get(NativeQuerySnippet, snippet_id)
        snippet.collection_id = collection_id
        session.add(snippet)
        await session.commit()
