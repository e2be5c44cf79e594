from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__
from .api import collections as collections_api
from .api import snippets as snippets_api
from .api.schemas import HealthResponse
from .app_db import AppDatabase
from .config import QuarrySettings
from .exceptions import ConfigurationError, PermissionDeniedError, QuarryError
from .permissions.groups import ensure_default_groups
from .premium import PremiumFeatures
from .utils.crypto import CryptoUtils
from .utils.logger import configure_logging

logger = structlog.get_logger(__name__)


async def bootstrap(db: AppDatabase) -> None:
    """Create tables and the magic permission groups."""
    await db.init_models()
    async with db.session() as session:
        await ensure_default_groups(session)
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    owns_db = app.state.db is None
    if owns_db:
        app.state.db = AppDatabase.from_settings(app.state.settings)
        await bootstrap(app.state.db)
    logger.info("quarry_started", version=__version__, premium_features=sorted(app.state.premium.features))

    yield

    # Shutdown
    if owns_db:
        await app.state.db.dispose()
    logger.info("quarry_stopped")


async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    logger.info("permission_denied", path=request.url.path, reason=exc.reason.value)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def quarry_error_handler(request: Request, exc: QuarryError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message, exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "errors": exc.details},
    )


def create_app(settings: Optional[QuarrySettings] = None, db: Optional[AppDatabase] = None) -> FastAPI:
    """
    Build the API app.

    Pass `db` to reuse an already initialized database (tests do); otherwise
    the lifespan connects with `settings` and bootstraps the schema.
    """
    settings = settings or QuarrySettings()

    app = FastAPI(
        title="Quarry",
        description="Native query snippets in permissioned collections",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.premium = PremiumFeatures.from_settings(settings)
    try:
        app.state.crypto = CryptoUtils.from_settings(settings)
    except ConfigurationError as e:
        logger.error("invalid_encryption_key", error=e.message)
        raise

    app.add_exception_handler(PermissionDeniedError, permission_denied_handler)
    app.add_exception_handler(QuarryError, quarry_error_handler)

    app.include_router(snippets_api.router)
    app.include_router(collections_api.router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc), version=__version__)

    return app


def run() -> None:
    import uvicorn

    settings = QuarrySettings()
    configure_logging(settings.log_level, settings.json_logs)
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
