"""
Triddle Form Builder - Main Application

FastAPI backend with:
- MongoDB for users, forms and responses
- JWT authentication (bearer header or cookie)
- Swagger UI under /api-docs
- Static files served from /public

Request path: middleware pipeline -> docs / health / API routes -> error handlers

Run: triddle  (or: uvicorn triddle.main:app)
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from pymongo.errors import PyMongoError

from triddle import __version__
from triddle.api.docs import DOCS_DESCRIPTION, DOCS_TITLE, attach_openapi_schema, register_docs_routes
from triddle.api.routes import api_router
from triddle.core.config import Settings, get_settings
from triddle.core.errors import register_exception_handlers
from triddle.core.lifecycle import Lifecycle
from triddle.core.logging import configure_logging
from triddle.db.mongodb import close_db, connect_db, init_mongo_indexes, test_mongo_connection
from triddle.middleware import build_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Hold the MongoDB client for the life of the app."""
    settings: Settings = app.state.settings
    db = connect_db(settings)
    try:
        try:
            init_mongo_indexes(db)
        except PyMongoError as e:
            logger.warning(f"MongoDB index initialization failed: {e}")
        yield
    finally:
        close_db()


def create_app(settings: Optional[Settings] = None, lifecycle: Optional[Lifecycle] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=DOCS_TITLE,
        description=DOCS_DESCRIPTION,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.lifecycle = lifecycle or Lifecycle()

    pipeline = build_pipeline(settings, app.state.lifecycle)
    pipeline.install(app)
    app.state.pipeline = pipeline

    register_docs_routes(app, settings)

    @app.get("/health", include_in_schema=False)
    def health_check():
        mongodb = test_mongo_connection()
        return {
            "success": True,
            "status": "healthy" if mongodb else "degraded",
            "mongodb": "connected" if mongodb else "disconnected",
        }

    app.include_router(api_router, prefix=settings.api_prefix)
    register_exception_handlers(app)

    # Built last so every route is described; raises DocumentationError
    attach_openapi_schema(app, settings)
    return app


app = create_app()
