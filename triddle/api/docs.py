"""
API documentation service.

The OpenAPI schema is generated once, from the route decorators and the
pydantic models they reference, when the app is created. A failure there
aborts startup instead of leaving a broken explorer online.

GET /api-docs/swagger.json - raw schema
GET /api-docs              - Swagger UI (assets from cdn.jsdelivr.net)
"""

import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse

from triddle import __version__
from triddle.core.config import Settings
from triddle.core.errors import DocumentationError

logger = logging.getLogger(__name__)

DOCS_TITLE = "Triddle Form Builder API"
DOCS_DESCRIPTION = "API documentation for Triddle Form Builder"
DOCS_CONTACT = {"name": "API Support", "email": "support@triddle.com"}
SITE_TITLE = "Triddle API Documentation"

SWAGGER_ASSET_ORIGIN = "https://cdn.jsdelivr.net"
SWAGGER_FAVICON_URL = "https://fastapi.tiangolo.com/img/favicon.png"

CUSTOM_CSS = """
    .swagger-ui .topbar { display: none }
    .swagger-ui .info { margin: 50px 0 }
"""

SWAGGER_UI_PARAMETERS = {
    "persistAuthorization": True,
    "tryItOutEnabled": True,
    "filter": True,
    "validatorUrl": None,
}


def server_list(settings: Settings) -> List[dict]:
    """Current environment server first, then the fixed ones (deduplicated)."""
    servers = [
        {"url": settings.current_server_url, "description": "Current environment server"},
        {"url": settings.production_url, "description": "Production server"},
        {"url": settings.development_url, "description": "Development server"},
    ]
    seen = set()
    unique = []
    for server in servers:
        if server["url"] in seen:
            continue
        seen.add(server["url"])
        unique.append(server)
    return unique


def build_openapi_schema(app: FastAPI, settings: Settings) -> dict:
    """
    Generate the schema from the registered routes.

    Paths are made relative to the API prefix, since every server URL
    already ends with it.

    Raises:
        DocumentationError: the routes or models cannot be described
    """
    try:
        schema = get_openapi(
            title=DOCS_TITLE,
            version=__version__,
            description=DOCS_DESCRIPTION,
            routes=app.routes,
            servers=server_list(settings),
            contact=DOCS_CONTACT,
        )
    except Exception as e:
        raise DocumentationError(f"Failed to generate API schema: {e}") from e

    prefix = settings.api_prefix.rstrip("/")
    if prefix:
        schema["paths"] = {
            (path[len(prefix):] or "/") if path.startswith(prefix + "/") or path == prefix else path: item
            for path, item in schema.get("paths", {}).items()
        }
    logger.info(f"API schema generated with {len(schema['paths'])} path(s)")
    return schema


def register_docs_routes(app: FastAPI, settings: Settings) -> None:
    """Mount the schema and explorer routes. The schema itself is attached later."""
    if not settings.docs_enabled:
        return

    docs_path = settings.docs_path.rstrip("/")
    schema_path = f"{docs_path}/swagger.json"

    @app.get(schema_path, include_in_schema=False)
    async def swagger_json(request: Request):
        return JSONResponse(request.app.state.openapi_schema)

    @app.get(docs_path, include_in_schema=False)
    async def swagger_ui():
        page = get_swagger_ui_html(
            openapi_url=schema_path,
            title=SITE_TITLE,
            swagger_favicon_url=SWAGGER_FAVICON_URL,
            swagger_ui_parameters=SWAGGER_UI_PARAMETERS,
        )
        html = page.body.decode("utf-8").replace("</head>", f"<style>{CUSTOM_CSS}</style></head>", 1)
        return HTMLResponse(html)


def attach_openapi_schema(app: FastAPI, settings: Settings) -> dict:
    """Build the schema once and make it the app's schema. Call after all routers are included."""
    schema = build_openapi_schema(app, settings)
    app.state.openapi_schema = schema
    app.openapi_schema = schema
    return schema
