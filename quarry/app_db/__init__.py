"""
Application database: connection specs and the async engine.
"""

from .connection import AppDatabase
from .spec import DbType, jdbc_url, spec, sqlalchemy_url, version_and_process_identifier

__all__ = ["AppDatabase", "DbType", "jdbc_url", "spec", "sqlalchemy_url", "version_and_process_identifier"]
