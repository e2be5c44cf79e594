"""
Permissions: group grants (session-backed) and the pure policy over them.
"""

from .grants import (
    grant_collection_read_permissions,
    grant_collection_readwrite_permissions,
    load_permission_set,
    revoke_collection_permissions,
    set_database_permission,
)
from .groups import add_user_to_group, admin_group, all_users_group, ensure_default_groups
from .policy import (
    ALLOWED,
    DenialReason,
    PermissionCheck,
    PermissionSet,
    SnippetAction,
    check_collection_read,
    check_collection_write,
    check_snippet,
    check_snippet_move,
    collection_perms_enforced,
)

__all__ = [
    "ALLOWED",
    "DenialReason",
    "PermissionCheck",
    "PermissionSet",
    "SnippetAction",
    "add_user_to_group",
    "admin_group",
    "all_users_group",
    "check_collection_read",
    "check_collection_write",
    "check_snippet",
    "check_snippet_move",
    "collection_perms_enforced",
    "ensure_default_groups",
    "grant_collection_read_permissions",
    "grant_collection_readwrite_permissions",
    "load_permission_set",
    "revoke_collection_permissions",
    "set_database_permission",
]
