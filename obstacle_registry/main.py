from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from obstacle_registry.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from obstacle_registry.db.concurrency import StorageConflict
from obstacle_registry.db.init_db import init_db
from obstacle_registry.logging_config import configure_app_logging
from obstacle_registry.routers import (
    health,
    home,
    notifications,
    obstacles,
    organization_manager,
    organizations,
    pilot,
    registrar,
    reports,
    roles,
    users,
)
from obstacle_registry.security.config import load_security_config
from obstacle_registry.security.dependencies import enforce_security
from obstacle_registry.settings import get_settings


async def storage_conflict_handler(request: Request, exc: StorageConflict) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": f"{exc.entity} {exc.entity_id} was changed by someone else. Reload and try again."},
    )


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)

        import logging

        logger = logging.getLogger(__name__)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route goes through the configured security rules.
    app = FastAPI(title="Obstacle Registry", dependencies=[Depends(enforce_security)], lifespan=lifespan)
    app.add_exception_handler(StorageConflict, storage_conflict_handler)

    app.include_router(health.router)
    app.include_router(home.router)
    app.include_router(obstacles.router)
    app.include_router(reports.router)
    app.include_router(registrar.router)
    app.include_router(pilot.router)
    app.include_router(organization_manager.router)
    app.include_router(organizations.router)
    app.include_router(users.router)
    app.include_router(roles.router)
    app.include_router(notifications.router)

    return app


app = create_app()
