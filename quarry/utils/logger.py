"""
Logging setup and the audit trail.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional

import structlog
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit import AuditLog


def configure_logging(level: str = "INFO", json_logs: bool = True, log_file: Optional[str] = None) -> None:
    """Route structlog through stdlib logging with JSON (or console) output"""
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()

    # structlog already rendered the event; stdlib only writes the line
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(file_handler)


class AuditLogger:
    """Specialized logger for audit trails"""

    def __init__(self) -> None:
        self.logger = structlog.get_logger("audit")

    async def log_action(
        self,
        session: AsyncSession,
        topic: str,
        user_id: Optional[int] = None,
        model: Optional[str] = None,
        model_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """Add an audit row to the caller's transaction and emit a log event"""
        entry = AuditLog(
            topic=topic,
            user_id=user_id,
            model=model,
            model_id=model_id,
            details=details or {},
        )
        session.add(entry)

        self.logger.info(
            "audit_action",
            topic=topic,
            user_id=user_id,
            model=model,
            model_id=model_id,
            details=details,
        )
        return entry

    async def query_audit_logs(
        self,
        session: AsyncSession,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list:
        """Query audit logs, newest first"""
        stmt = select(AuditLog)
        for key, value in (filters or {}).items():
            if value is not None:
                stmt = stmt.where(getattr(AuditLog, key) == value)
        stmt = stmt.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(offset).limit(limit)

        result = await session.execute(stmt)
        return list(result.scalars().all())


audit_logger = AuditLogger()
