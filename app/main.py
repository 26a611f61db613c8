from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.logging_config import configure_app_logging
from app.routers import (
    admin,
    grids,
    health,
    permissions,
    supply_donations,
    users,
    volunteer_registrations,
    volunteers,
)
from app.security.dependencies import get_viewer
from app.security.permissions import build_permission_cache
from app.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        init_db()
        logger.info("Database initialized (tables ensured + permission seed applied)")

        app.state.permission_cache = build_permission_cache(SessionLocal)
        logger.info("Permission cache ready rules=%d", len(app.state.permission_cache.snapshot()))

        yield
        # Shutdown (nothing to clean up)

    # Global dependency: every request resolves its viewer (401/403 on bad token or override).
    app = FastAPI(title="Shovel Heroes API", dependencies=[Depends(get_viewer)], lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(grids.router)
    app.include_router(volunteer_registrations.router)
    app.include_router(volunteers.router)
    app.include_router(supply_donations.router)
    app.include_router(permissions.router)
    app.include_router(admin.router)

    return app


app = create_app()
