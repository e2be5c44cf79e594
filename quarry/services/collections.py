"""
Collection location paths and collection lifecycle.

A collection's `location` lists its ancestors' ids: `/` for a child of the
Root Collection, `/10/20/` for a collection inside 20 inside 10.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..exceptions import InvalidRequestError, NotFoundError
from ..models import SNIPPETS_NAMESPACE, Collection, CollectionPermission, NativeQuerySnippet, RootCollection
from ..permissions.policy import (
    PermissionSet,
    SnippetAction,
    check_collection_read,
    check_snippet,
    collection_perms_enforced,
)
from ..premium import PremiumFeatures

logger = structlog.get_logger(__name__)

AnyCollection = Union[Collection, RootCollection]

ITEM_MODELS = ("collection", "snippet")

_LOCATION_PATH_RE = re.compile(r"^/(?:[1-9]\d*/)*$")


def location_path(*collections_or_ids: Union[int, Collection]) -> str:
    """`location_path(1, 2)` -> `/1/2/`; no arguments -> `/`."""
    ids = [c.id if isinstance(c, Collection) else c for c in collections_or_ids]
    if not ids:
        return "/"
    return "/" + "/".join(str(i) for i in ids) + "/"


def is_valid_location_path(path: object) -> bool:
    if not isinstance(path, str) or not _LOCATION_PATH_RE.match(path):
        return False
    ids = location_path_ids(path)
    return len(ids) == len(set(ids))


def location_path_ids(path: str) -> List[int]:
    if not isinstance(path, str) or not _LOCATION_PATH_RE.match(path):
        raise InvalidRequestError(f"Invalid location path: {path!r}")
    return [int(part) for part in path.strip("/").split("/") if part]


def parent_id(collection: AnyCollection) -> Optional[int]:
    """Id of the parent collection, or None when the parent is the Root Collection."""
    if isinstance(collection, RootCollection):
        return None
    ids = location_path_ids(collection.location)
    return ids[-1] if ids else None


def children_location(collection: AnyCollection) -> str:
    """The `location` a direct child of `collection` gets."""
    if isinstance(collection, RootCollection):
        return "/"
    if collection.id is None:
        raise InvalidRequestError("Collection must be saved before it can have children")
    return f"{collection.location}{collection.id}/"


def is_root(collection: AnyCollection) -> bool:
    return isinstance(collection, RootCollection)


async def get_collection(
    session: AsyncSession,
    collection_id: Union[int, str, None],
    namespace: Optional[str] = None,
) -> AnyCollection:
    """Fetch a collection row; `None` or `"root"` yields the Root Collection of `namespace`."""
    if collection_id is None or collection_id == "root":
        return RootCollection(namespace=namespace)
    collection = await session.get(Collection, int(collection_id))
    if collection is None:
        raise NotFoundError("Collection", collection_id)
    return collection


async def create_collection(
    session: AsyncSession,
    name: str,
    namespace: Optional[str] = None,
    parent: Optional[AnyCollection] = None,
    description: Optional[str] = None,
) -> Collection:
    """
    Create a collection under `parent` (default: the Root Collection).

    The new collection starts with a copy of its parent's group grants.
    """
    parent = parent or RootCollection(namespace=namespace)
    if parent.namespace != namespace:
        raise InvalidRequestError(
            "A collection must be in the same namespace as its parent",
            {"parent_namespace": parent.namespace, "namespace": namespace},
        )

    collection = Collection(
        name=name,
        description=description,
        namespace=namespace,
        location=children_location(parent),
    )
    session.add(collection)
    await session.flush()  # allocate collection.id

    await copy_parent_permissions(session, collection, parent)

    logger.info(
        "collection_created",
        collection_id=collection.id,
        namespace=namespace,
        location=collection.location,
    )
    return collection


async def copy_parent_permissions(session: AsyncSession, collection: Collection, parent: AnyCollection) -> int:
    stmt = select(CollectionPermission)
    if isinstance(parent, RootCollection):
        stmt = stmt.where(
            CollectionPermission.collection_id.is_(None),
            # `== None` renders as IS NULL for the default namespace
            CollectionPermission.namespace == parent.namespace,
        )
    else:
        stmt = stmt.where(CollectionPermission.collection_id == parent.id)

    result = await session.execute(stmt)
    copied = 0
    for grant in result.scalars().all():
        session.add(
            CollectionPermission(
                group_id=grant.group_id,
                collection_id=collection.id,
                namespace=collection.namespace,
                level=grant.level,
            )
        )
        copied += 1
    return copied


async def descendant_ids(session: AsyncSession, collection: AnyCollection) -> List[int]:
    """Ids of every collection below `collection` in its namespace."""
    namespace = collection.namespace
    stmt = select(Collection.id).where(Collection.namespace == namespace)
    if not isinstance(collection, RootCollection):
        stmt = stmt.where(Collection.location.startswith(children_location(collection)))
    result = await session.execute(stmt)
    return list(result.scalars().all())


# -------------------------
# Collection items
# -------------------------


def _collection_item(collection: Collection) -> Dict[str, Any]:
    return {
        "id": collection.id,
        "name": collection.name,
        "entity_id": collection.entity_id,
        "model": "collection",
        "description": collection.description,
        "archived": collection.archived,
        "location": collection.location,
        "namespace": collection.namespace,
    }


def _snippet_item(snippet: NativeQuerySnippet) -> Dict[str, Any]:
    return {
        "id": snippet.id,
        "name": snippet.name,
        "entity_id": snippet.entity_id,
        "model": "snippet",
        "description": snippet.description,
        "archived": snippet.archived,
        "collection_id": snippet.collection_id,
    }


async def list_collection_items(
    session: AsyncSession,
    perms: PermissionSet,
    features: PremiumFeatures,
    collection_id: Union[int, str, None],
    namespace: Optional[str] = None,
    archived: bool = False,
    models: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """
    Items directly inside a collection, sorted by name.

    When snippet collections are not enforced (no premium feature), the
    snippets namespace is flat: every snippet anywhere below the collection
    comes back and sub-collections are left out.
    """
    collection = await get_collection(session, collection_id, namespace)
    namespace = collection.namespace
    readable = check_collection_read(perms, collection.id, namespace, features)
    # The Root Collection can always be browsed; only its own items are hidden
    if not isinstance(collection, RootCollection):
        readable.raise_if_denied()

    wanted = set(models or ITEM_MODELS)
    unknown = wanted - set(ITEM_MODELS)
    if unknown:
        raise InvalidRequestError(f"Unknown item models: {sorted(unknown)}")

    items: List[Dict[str, Any]] = []
    flat_snippets = namespace == SNIPPETS_NAMESPACE and not collection_perms_enforced(namespace, features)

    if "snippet" in wanted and namespace == SNIPPETS_NAMESPACE and readable:
        stmt = select(NativeQuerySnippet).where(NativeQuerySnippet.archived == archived)
        if flat_snippets:
            if not isinstance(collection, RootCollection):
                subtree = [collection.id] + await descendant_ids(session, collection)
                stmt = stmt.where(NativeQuerySnippet.collection_id.in_(subtree))
        else:
            stmt = stmt.where(NativeQuerySnippet.collection_id == collection.id)
        result = await session.execute(stmt)
        # Snippet reads also need native query perms on some database
        items.extend(
            _snippet_item(s)
            for s in result.scalars().all()
            if check_snippet(perms, s.collection_id, SnippetAction.READ, features)
        )

    if "collection" in wanted and not flat_snippets:
        result = await session.execute(
            select(Collection).where(
                Collection.namespace == namespace,
                Collection.location == children_location(collection),
                Collection.archived == archived,
            )
        )
        items.extend(
            _collection_item(child)
            for child in result.scalars().all()
            if check_collection_read(perms, child.id, namespace, features)
        )

    items.sort(key=lambda item: (item["name"].lower(), item["model"], item["id"]))
    logger.debug(
        "collection_items_listed",
        collection_id=collection.id,
        namespace=namespace,
        archived=archived,
        count=len(items),
    )
    return {
        "total": len(items),
        "data": items,
        "models": sorted({item["model"] for item in items}),
    }


def parse_collection_id(value: str) -> Union[int, str]:
    """Path segment -> collection id; `root` passes through."""
    if value == "root":
        return value
    try:
        return int(value)
    except ValueError:
        raise NotFoundError("Collection", value) from None
