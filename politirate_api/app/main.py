"""
Main entrypoint for the PolitiRate API.

``create_app`` configures logging, mounts the versioned routers and
registers the startup hook that applies database migrations.  The
module-level ``app`` can be served directly::

    uvicorn politirate_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Logging first so that startup messages are captured.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        init_db()
        logger.info("%s %s ready", settings.project_name, settings.api_version)

    return app


app = create_app()
