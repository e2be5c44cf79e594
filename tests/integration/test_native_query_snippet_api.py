"""
Snippet API permissions with and without the snippet-collections feature.

Every scenario runs against a snippet in a regular snippet collection and
one in the Root Collection, with native query perms granted to All Users.
"""
import pytest

from quarry.exceptions import PERMISSION_DENIED_MESSAGE
from quarry.models import AuditLog, NativeQuerySnippet
from quarry.premium import SNIPPET_COLLECTIONS
from quarry.utils.logger import audit_logger

from ..conftest import (
    CROWBERTO_KEY,
    RASTA_KEY,
    SNIPPETS_ROOT,
    allow_native_queries,
    grant,
    make_collection,
    make_snippet,
    random_name,
    revoke,
    set_snippet_collection,
    user_request,
)

API = "/api/native-query-snippet"


@pytest.fixture
async def snippet_env(db, users, sample_database):
    """No root perms for the snippets namespace; one normal snippet collection."""
    await revoke(db, SNIPPETS_ROOT)
    await allow_native_queries(db, sample_database.id)
    collection = await make_collection(db, "Snippet Collection")
    return collection


async def _check_perms(db, client, premium, creator_id, collections, has_perms):
    """
    Returns `(collection, allowed_with_read, allowed_with_write)` per collection.

    Without the premium feature access is always allowed; with it, no
    collection perms always denies.
    """
    results = []
    for collection in collections:
        snippet = await make_snippet(db, creator_id, collection.id)

        with premium.override(set()):
            assert await has_perms(client, snippet, collection), f"{collection.name} without the premium feature"

        with premium.override({SNIPPET_COLLECTIONS}):
            await revoke(db, collection)
            assert not await has_perms(client, snippet, collection), f"{collection.name} with no perms"

            await grant(db, "read", collection)
            with_read = await has_perms(client, snippet, collection)

            await grant(db, "write", collection)
            with_write = await has_perms(client, snippet, collection)

            await revoke(db, collection)

        results.append((collection, with_read, with_write))
    return results


async def _can_list(client, snippet, _collection):
    response = await user_request(client, RASTA_KEY, "GET", API)
    assert response.status_code == 200
    return snippet.id in {s["id"] for s in response.json()}


async def _can_fetch(client, snippet, _collection):
    response = await user_request(client, RASTA_KEY, "GET", f"{API}/{snippet.id}")
    return response.status_code != 403


async def _can_create(client, _snippet, collection):
    response = await user_request(
        client,
        RASTA_KEY,
        "POST",
        API,
        json={"name": random_name(), "content": "1 = 1", "collection_id": collection.id},
    )
    return response.status_code != 403


async def _can_edit(client, snippet, _collection):
    response = await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"name": random_name()})
    return response.status_code != 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "has_perms,read_allows",
    [
        (_can_list, True),
        (_can_fetch, True),
        (_can_create, False),
        (_can_edit, False),
    ],
    ids=["list", "fetch", "create", "edit"],
)
async def test_snippet_permissions(db, users, client, premium, snippet_env, has_perms, read_allows):
    results = await _check_perms(
        db, client, premium, users.crowberto.id, [snippet_env, SNIPPETS_ROOT], has_perms
    )
    for collection, with_read, with_write in results:
        assert with_read is read_allows, f"read perms in {collection.name}"
        assert with_write is True, f"write perms in {collection.name}"


@pytest.mark.asyncio
async def test_no_native_query_perms_denies_everything(db, users, client, premium, sample_database):
    snippet = await make_snippet(db, users.crowberto.id)
    with premium.override(set()):
        response = await user_request(client, RASTA_KEY, "GET", f"{API}/{snippet.id}")
        assert response.status_code == 403
        assert response.text == PERMISSION_DENIED_MESSAGE

        response = await user_request(client, RASTA_KEY, "GET", API)
        assert response.json() == []

    await allow_native_queries(db, sample_database.id)
    response = await user_request(client, RASTA_KEY, "GET", f"{API}/{snippet.id}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_bypasses_collection_perms(db, users, client, premium, snippet_env):
    snippet = await make_snippet(db, users.crowberto.id, snippet_env.id)
    with premium.override({SNIPPET_COLLECTIONS}):
        response = await user_request(client, CROWBERTO_KEY, "GET", f"{API}/{snippet.id}")
    assert response.status_code == 200
    assert response.json()["name"] == snippet.name


# -------------------------
# Moving snippets
# -------------------------


@pytest.fixture
async def move_env(db, users, snippet_env):
    source = snippet_env
    dest = await make_collection(db, "Destination Collection")
    snippet = await make_snippet(db, users.crowberto.id, source.id)
    return source, dest, snippet


async def _move(db, client, snippet, source, dest) -> bool:
    await set_snippet_collection(db, snippet.id, source.id)
    response = await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"collection_id": dest.id})
    if response.status_code == 403:
        return False
    assert response.status_code == 200, response.text
    return response.json()["collection_id"] == dest.id


@pytest.mark.asyncio
async def test_move_permissions(db, client, premium, move_env):
    source_coll, dest_coll, snippet = move_env

    for source in (source_coll, SNIPPETS_ROOT):
        for dest in (dest_coll, SNIPPETS_ROOT):
            if source == dest:
                continue
            label = f"{source.name} -> {dest.name}"

            with premium.override(set()):
                assert await _move(db, client, snippet, source, dest), f"{label} without the premium feature"

            with premium.override({SNIPPET_COLLECTIONS}):
                for collection in (source, dest):
                    await revoke(db, collection)
                assert not await _move(db, client, snippet, source, dest), f"{label} with no perms"

                await grant(db, "write", source)
                assert not await _move(db, client, snippet, source, dest), f"{label} with source perms only"
                await revoke(db, source)

                await grant(db, "write", dest)
                assert not await _move(db, client, snippet, source, dest), f"{label} with dest perms only"

                await grant(db, "write", source)
                assert await _move(db, client, snippet, source, dest), f"{label} with both"

                for collection in (source, dest):
                    await revoke(db, collection)


@pytest.mark.asyncio
async def test_move_is_audited(db, users, client, move_env):
    source, dest, snippet = move_env
    response = await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"collection_id": dest.id})
    assert response.status_code == 200

    async with db.session() as session:
        entries = await audit_logger.query_audit_logs(session, {"topic": "snippet-update", "model_id": snippet.id})
    assert len(entries) == 1
    assert isinstance(entries[0], AuditLog)
    assert entries[0].user_id == users.rasta.id
    assert entries[0].details["previous_collection_id"] == source.id


# -------------------------
# Validation
# -------------------------


@pytest.mark.asyncio
async def test_create_and_fetch(db, users, client, sample_database):
    await allow_native_queries(db, sample_database.id)
    response = await user_request(
        client, RASTA_KEY, "POST", API, json={"name": "expensive", "content": "price > 100", "description": "$$$"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["creator_id"] == users.rasta.id
    assert body["collection_id"] is None
    assert body["entity_id"]

    response = await user_request(client, RASTA_KEY, "GET", f"{API}/{body['id']}")
    assert response.json()["content"] == "price > 100"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", " leading", "has}brace"])
async def test_invalid_names_are_rejected(db, users, client, sample_database, name):
    await allow_native_queries(db, sample_database.id)
    response = await user_request(client, RASTA_KEY, "POST", API, json={"name": name, "content": "1"})
    assert response.status_code in (400, 422)


@pytest.mark.asyncio
async def test_duplicate_names_are_rejected(db, users, client, sample_database):
    await allow_native_queries(db, sample_database.id)
    existing = await make_snippet(db, users.crowberto.id)
    response = await user_request(client, RASTA_KEY, "POST", API, json={"name": existing.name, "content": "1"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_snippets_only_go_in_snippet_collections(db, users, client, sample_database):
    await allow_native_queries(db, sample_database.id)
    regular = await make_collection(db, "Regular Collection", namespace=None)
    response = await user_request(
        client, RASTA_KEY, "POST", API, json={"name": random_name(), "content": "1", "collection_id": regular.id}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_archiving_hides_snippets_from_the_default_list(db, users, client, sample_database):
    await allow_native_queries(db, sample_database.id)
    snippet = await make_snippet(db, users.crowberto.id)

    response = await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"archived": True})
    assert response.json()["archived"] is True

    listed = await user_request(client, RASTA_KEY, "GET", API)
    archived = await user_request(client, RASTA_KEY, "GET", API, params={"archived": "true"})
    assert snippet.id not in {s["id"] for s in listed.json()}
    assert snippet.id in {s["id"] for s in archived.json()}


@pytest.mark.asyncio
async def test_missing_snippet_and_missing_api_key(db, users, client):
    assert (await user_request(client, CROWBERTO_KEY, "GET", f"{API}/999999")).status_code == 404
    assert (await client.get(API)).status_code == 401
    assert (await user_request(client, "not-a-key", "GET", API)).status_code == 401


@pytest.mark.asyncio
async def test_snippet_rows_persist_edits(db, users, client, sample_database):
    await allow_native_queries(db, sample_database.id)
    snippet = await make_snippet(db, users.crowberto.id)
    await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"content": "price < 5"})

    async with db.session() as session:
        stored = await session.get(NativeQuerySnippet, snippet.id)
    assert stored.content == "price < 5"
    assert stored.updated_at >= stored.created_at


@pytest.mark.asyncio
async def test_restating_the_current_collection_is_not_a_move(db, users, client, premium, move_env):
    source, _dest, snippet = move_env
    new_name = random_name()

    with premium.override({SNIPPET_COLLECTIONS}):
        await grant(db, "write", source)
        response = await user_request(
            client,
            RASTA_KEY,
            "PUT",
            f"{API}/{snippet.id}",
            json={"collection_id": source.id, "name": new_name},
        )
    assert response.status_code == 200, response.text
    assert response.json()["collection_id"] == source.id
    assert response.json()["name"] == new_name

    async with db.session() as session:
        entries = await audit_logger.query_audit_logs(session, {"topic": "snippet-update", "model_id": snippet.id})
    assert len(entries) == 1
    assert entries[0].details == {"changed": ["name"]}


@pytest.mark.asyncio
async def test_missing_collection_is_not_found_before_perms(db, users, client, premium, move_env):
    _source, _dest, snippet = move_env

    with premium.override({SNIPPET_COLLECTIONS}):
        response = await user_request(
            client, RASTA_KEY, "POST", API, json={"name": random_name(), "content": "1", "collection_id": 999999}
        )
        assert response.status_code == 404

        response = await user_request(client, RASTA_KEY, "PUT", f"{API}/{snippet.id}", json={"collection_id": 999999})
        assert response.status_code == 404
