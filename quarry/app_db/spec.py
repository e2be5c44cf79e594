"""
Connection specs for the application database.

`spec` builds a JDBC-style connection map (driver class, subprotocol and
subname) the way JVM tooling and the legacy deployment scripts expect it;
`sqlalchemy_url` builds the URL the async engine actually connects with.
"""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from sqlalchemy.engine import URL

from .. import __version__
from ..exceptions import ConfigurationError


class DbType(str, Enum):
    H2 = "h2"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


DEFAULT_PORTS: Dict[DbType, int] = {
    DbType.POSTGRES: 5432,
    DbType.MYSQL: 3306,
}

DEFAULT_EMBEDDED_DB = "quarry.db"

_LOCAL_PROCESS_UUID = str(uuid.uuid4())


def version_and_process_identifier() -> str:
    """Identifies this process to the database server, e.g. in `pg_stat_activity`."""
    return f"Quarry v{__version__} [{_LOCAL_PROCESS_UUID}]"


def _coerce_db_type(db_type: Union[str, DbType]) -> DbType:
    try:
        return DbType(db_type)
    except ValueError:
        raise ConfigurationError(f"Unsupported application database type: {db_type!r}") from None


def make_subname(host: Optional[str], port: Optional[int], db: Optional[str]) -> str:
    # str.format would render None as "None"; an absent db means "the user's default"
    return f"//{host}:{port}/{db or ''}"


def _remaining(opts: Mapping[str, Any], *consumed: str) -> Dict[str, Any]:
    # Unrecognized keys pass through untouched, None values included
    return {k: v for k, v in opts.items() if k not in consumed}


def _server_spec(
    db_type: DbType,
    classname: str,
    subprotocol: str,
    opts: Mapping[str, Any],
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    host = opts.get("host") or "localhost"
    port = opts.get("port") or DEFAULT_PORTS[db_type]
    result: Dict[str, Any] = {
        "classname": classname,
        "subprotocol": subprotocol,
        "subname": make_subname(host, port, opts.get("db")),
    }
    result.update(extra or {})
    result.update(_remaining(opts, "host", "port", "db"))
    return result


def _postgres_spec(opts: Mapping[str, Any]) -> Dict[str, Any]:
    return _server_spec(
        DbType.POSTGRES,
        "org.postgresql.Driver",
        "postgresql",
        opts,
        extra={
            "OpenSourceSubProtocolOverride": True,
            "ApplicationName": version_and_process_identifier(),
        },
    )


def _mysql_spec(opts: Mapping[str, Any]) -> Dict[str, Any]:
    return _server_spec(DbType.MYSQL, "org.mariadb.jdbc.Driver", "mysql", opts)


def _h2_spec(opts: Mapping[str, Any]) -> Dict[str, Any]:
    result = {
        "classname": "org.h2.Driver",
        "subprotocol": "h2",
        "subname": opts.get("db") or DEFAULT_EMBEDDED_DB,
    }
    result.update(_remaining(opts, "db"))
    return result


def _sqlite_spec(opts: Mapping[str, Any]) -> Dict[str, Any]:
    result = {
        "classname": "org.sqlite.JDBC",
        "subprotocol": "sqlite",
        "subname": opts.get("db") or DEFAULT_EMBEDDED_DB,
    }
    result.update(_remaining(opts, "db"))
    return result


_SPEC_BUILDERS: Dict[DbType, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    DbType.POSTGRES: _postgres_spec,
    DbType.MYSQL: _mysql_spec,
    DbType.H2: _h2_spec,
    DbType.SQLITE: _sqlite_spec,
}


def spec(db_type: Union[str, DbType], opts: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a connection spec for `db_type` from connection options.

    `host`, `port` and `db` are consumed to build `subname`; a key that is
    present with a None value counts as missing, so the port falls back to
    the vendor default and the database name to "". Every other key is
    copied into the result as-is.
    """
    builder = _SPEC_BUILDERS[_coerce_db_type(db_type)]
    return builder(opts or {})


def jdbc_url(spec_map: Mapping[str, Any]) -> str:
    return f"jdbc:{spec_map['subprotocol']}:{spec_map['subname']}"


_SQLALCHEMY_DRIVERS: Dict[DbType, str] = {
    DbType.POSTGRES: "postgresql+asyncpg",
    DbType.MYSQL: "mysql+aiomysql",
    DbType.SQLITE: "sqlite+aiosqlite",
}


def sqlalchemy_url(db_type: Union[str, DbType], opts: Optional[Mapping[str, Any]] = None) -> URL:
    """URL for the async SQLAlchemy engine, with the same defaults as `spec`."""
    db_type = _coerce_db_type(db_type)
    opts = opts or {}
    drivername = _SQLALCHEMY_DRIVERS.get(db_type)
    if drivername is None:
        raise ConfigurationError(f"{db_type.value} has no SQLAlchemy dialect; use postgres, mysql or sqlite")

    if db_type is DbType.SQLITE:
        return URL.create(drivername, database=opts.get("db") or DEFAULT_EMBEDDED_DB)

    return URL.create(
        drivername,
        username=opts.get("user"),
        password=opts.get("password"),
        host=opts.get("host") or "localhost",
        port=opts.get("port") or DEFAULT_PORTS[db_type],
        database=opts.get("db") or None,
    )
