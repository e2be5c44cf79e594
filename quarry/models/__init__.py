"""
Row models for the application database.

Importing this package registers every table on `SQLModel.metadata`.
"""

from .audit import AuditLog
from .collection import Collection, RootCollection, SNIPPETS_NAMESPACE
from .dashboard import Card, Dashboard, DashboardCard, DashboardCardSeries
from .database import Database
from .permissions import (
    CollectionPermission,
    CollectionPermissionLevel,
    CreateQueriesValue,
    DataPermission,
    DataPermissionType,
)
from .snippet import NativeQuerySnippet
from .user import PermissionsGroup, PermissionsGroupMembership, User

__all__ = [
    "AuditLog",
    "Card",
    "Collection",
    "CollectionPermission",
    "CollectionPermissionLevel",
    "CreateQueriesValue",
    "Dashboard",
    "DashboardCard",
    "DashboardCardSeries",
    "DataPermission",
    "DataPermissionType",
    "Database",
    "NativeQuerySnippet",
    "PermissionsGroup",
    "PermissionsGroupMembership",
    "RootCollection",
    "SNIPPETS_NAMESPACE",
    "User",
]
