"""
Authorization policy for collections and native query snippets.

Everything here is pure: callers load a `PermissionSet` for the current
user once and ask questions of it. A check returns a `PermissionCheck`
rather than raising, so services decide how a denial surfaces.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..exceptions import PermissionDeniedError
from ..models import SNIPPETS_NAMESPACE, CollectionPermissionLevel
from ..premium import SNIPPET_COLLECTIONS, PremiumFeatures


class SnippetAction(str, Enum):
    READ = "read"
    WRITE = "write"


class DenialReason(str, Enum):
    NO_NATIVE_QUERY_PERMS = "no-native-query-perms"
    NO_COLLECTION_READ = "no-collection-read"
    NO_COLLECTION_WRITE = "no-collection-write"


@dataclass(frozen=True)
class PermissionCheck:
    allowed: bool
    reason: Optional[DenialReason] = None

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise PermissionDeniedError(self.reason)


ALLOWED = PermissionCheck(True)


def denied(reason: DenialReason) -> PermissionCheck:
    return PermissionCheck(False, reason)


@dataclass(frozen=True)
class PermissionSet:
    """
    What one user may do, flattened across all of their groups.

    `collections` maps collection id to the best granted level;
    `root_collections` does the same for each namespace's Root Collection.
    """

    user_id: Optional[int] = None
    is_superuser: bool = False
    collections: Dict[int, CollectionPermissionLevel] = field(default_factory=dict)
    root_collections: Dict[Optional[str], CollectionPermissionLevel] = field(default_factory=dict)
    native_query_db_ids: FrozenSet[int] = frozenset()

    def collection_level(
        self, collection_id: Optional[int], namespace: Optional[str] = None
    ) -> Optional[CollectionPermissionLevel]:
        if collection_id is None:
            return self.root_collections.get(namespace)
        return self.collections.get(collection_id)

    @property
    def has_any_native_permissions(self) -> bool:
        return self.is_superuser or bool(self.native_query_db_ids)


def collection_perms_enforced(namespace: Optional[str], features: PremiumFeatures) -> bool:
    """Snippet collections are only permission scopes with the premium feature on."""
    if namespace == SNIPPETS_NAMESPACE:
        return features.enabled(SNIPPET_COLLECTIONS)
    return True


def check_collection_read(
    perms: PermissionSet,
    collection_id: Optional[int],
    namespace: Optional[str],
    features: PremiumFeatures,
) -> PermissionCheck:
    if perms.is_superuser or not collection_perms_enforced(namespace, features):
        return ALLOWED
    if perms.collection_level(collection_id, namespace) is None:
        return denied(DenialReason.NO_COLLECTION_READ)
    return ALLOWED


def check_collection_write(
    perms: PermissionSet,
    collection_id: Optional[int],
    namespace: Optional[str],
    features: PremiumFeatures,
) -> PermissionCheck:
    if perms.is_superuser or not collection_perms_enforced(namespace, features):
        return ALLOWED
    if perms.collection_level(collection_id, namespace) is not CollectionPermissionLevel.WRITE:
        return denied(DenialReason.NO_COLLECTION_WRITE)
    return ALLOWED


def check_snippet(
    perms: PermissionSet,
    collection_id: Optional[int],
    action: SnippetAction,
    features: PremiumFeatures,
) -> PermissionCheck:
    """
    May the user `action` a snippet that lives in `collection_id`?

    Native query permissions on at least one database are always required;
    collection read/write is required on top when snippet collections are
    enabled.
    """
    if perms.is_superuser:
        return ALLOWED
    if not perms.has_any_native_permissions:
        return denied(DenialReason.NO_NATIVE_QUERY_PERMS)
    if action is SnippetAction.READ:
        return check_collection_read(perms, collection_id, SNIPPETS_NAMESPACE, features)
    return check_collection_write(perms, collection_id, SNIPPETS_NAMESPACE, features)


def check_snippet_move(
    perms: PermissionSet,
    source_collection_id: Optional[int],
    dest_collection_id: Optional[int],
    features: PremiumFeatures,
) -> PermissionCheck:
    """Moving needs write on both the current and the new parent collection."""
    for collection_id in (source_collection_id, dest_collection_id):
        check = check_snippet(perms, collection_id, SnippetAction.WRITE, features)
        if not check:
            return check
    return ALLOWED
