"""
Native query snippet service.

Every operation takes the caller's `PermissionSet` and the enabled
`PremiumFeatures`; denials raise `PermissionDeniedError`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..exceptions import InvalidRequestError, NotFoundError
from ..models import SNIPPETS_NAMESPACE, Collection, NativeQuerySnippet
from ..models.base import utcnow
from ..permissions.policy import PermissionSet, SnippetAction, check_snippet, check_snippet_move
from ..premium import PremiumFeatures
from ..utils.logger import audit_logger

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = ("name", "description", "content", "archived", "collection_id")


def validate_snippet_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidRequestError("Snippet name cannot be blank")
    if name[0].isspace():
        raise InvalidRequestError("Snippet name cannot start with whitespace")
    if "}" in name:
        raise InvalidRequestError("Snippet name cannot contain '}'")
    return name


async def _check_snippet_collection(session: AsyncSession, collection_id: Optional[int]) -> None:
    """Snippets may only live in the Root Collection or in `snippets` namespace collections."""
    if collection_id is None:
        return
    collection = await session.get(Collection, collection_id)
    if collection is None:
        raise NotFoundError("Collection", collection_id)
    if collection.namespace != SNIPPETS_NAMESPACE:
        raise InvalidRequestError(
            "A snippet can only be saved in a snippets collection",
            {"collection_id": collection_id, "namespace": collection.namespace},
        )


async def _check_unique_name(session: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(NativeQuerySnippet.id).where(NativeQuerySnippet.name == name)
    if exclude_id is not None:
        stmt = stmt.where(NativeQuerySnippet.id != exclude_id)
    result = await session.execute(stmt)
    if result.scalars().first() is not None:
        raise InvalidRequestError(f"A snippet named {name!r} already exists", {"name": name})


async def list_snippets(
    session: AsyncSession,
    perms: PermissionSet,
    features: PremiumFeatures,
    archived: bool = False,
) -> List[NativeQuerySnippet]:
    """Snippets the user can read, sorted by name."""
    result = await session.execute(
        select(NativeQuerySnippet)
        .where(NativeQuerySnippet.archived == archived)
        .order_by(NativeQuerySnippet.name)
    )
    return [
        snippet
        for snippet in result.scalars().all()
        if check_snippet(perms, snippet.collection_id, SnippetAction.READ, features)
    ]


async def get_snippet(
    session: AsyncSession,
    perms: PermissionSet,
    features: PremiumFeatures,
    snippet_id: int,
) -> NativeQuerySnippet:
    snippet = await session.get(NativeQuerySnippet, snippet_id)
    if snippet is None:
        raise NotFoundError("NativeQuerySnippet", snippet_id)
    check_snippet(perms, snippet.collection_id, SnippetAction.READ, features).raise_if_denied()
    return snippet


async def create_snippet(
    session: AsyncSession,
    perms: PermissionSet,
    features: PremiumFeatures,
    *,
    name: str,
    content: str,
    description: Optional[str] = None,
    collection_id: Optional[int] = None,
) -> NativeQuerySnippet:
    await _check_snippet_collection(session, collection_id)
    check_snippet(perms, collection_id, SnippetAction.WRITE, features).raise_if_denied()
    validate_snippet_name(name)
    await _check_unique_name(session, name)

    snippet = NativeQuerySnippet(
        name=name,
        content=content,
        description=description,
        collection_id=collection_id,
        creator_id=perms.user_id,
    )
    session.add(snippet)
    await session.flush()

    await audit_logger.log_action(
        session,
        "snippet-create",
        user_id=perms.user_id,
        model="NativeQuerySnippet",
        model_id=snippet.id,
        details={"name": name, "collection_id": collection_id},
    )
    await session.commit()

    logger.info("snippet_created", snippet_id=snippet.id, collection_id=collection_id)
    return snippet


async def update_snippet(
    session: AsyncSession,
    perms: PermissionSet,
    features: PremiumFeatures,
    snippet_id: int,
    changes: Dict[str, Any],
) -> NativeQuerySnippet:
    """
    Apply `changes` to a snippet.

    A `collection_id` that differs from the current one is a move and needs
    write access to both collections; any other edit needs write access to
    the snippet's current collection.
    """
    snippet = await session.get(NativeQuerySnippet, snippet_id)
    if snippet is None:
        raise NotFoundError("NativeQuerySnippet", snippet_id)

    changes = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS}
    moving = "collection_id" in changes and changes["collection_id"] != snippet.collection_id

    if moving:
        await _check_snippet_collection(session, changes["collection_id"])
        check_snippet_move(perms, snippet.collection_id, changes["collection_id"], features).raise_if_denied()
    else:
        changes.pop("collection_id", None)
        check_snippet(perms, snippet.collection_id, SnippetAction.WRITE, features).raise_if_denied()

    if "name" in changes:
        if changes["name"] is None:
            raise InvalidRequestError("Snippet name cannot be blank")
        validate_snippet_name(changes["name"])
        await _check_unique_name(session, changes["name"], exclude_id=snippet.id)
    if "content" in changes and changes["content"] is None:
        raise InvalidRequestError("Snippet content cannot be null")
    if "archived" in changes and changes["archived"] is None:
        changes.pop("archived")

    details: Dict[str, Any] = {"changed": sorted(changes)}
    if moving:
        details["previous_collection_id"] = snippet.collection_id
    for key, value in changes.items():
        setattr(snippet, key, value)
    snippet.updated_at = utcnow()
    session.add(snippet)

    await audit_logger.log_action(
        session,
        "snippet-update",
        user_id=perms.user_id,
        model="NativeQuerySnippet",
        model_id=snippet.id,
        details=details,
    )
    await session.commit()

    logger.info("snippet_updated", snippet_id=snippet.id, moved=moving, changed=sorted(changes))
    return snippet
