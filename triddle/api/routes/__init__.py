"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from triddle.api.routes.auth_routes import router as auth_router
from triddle.api.routes.user_routes import router as user_router
from triddle.api.routes.form_routes import router as form_router
from triddle.api.routes.response_routes import router as response_router
from triddle.schemas.schemas import ErrorResponse

# Error envelope documented on every route
ERROR_RESPONSES = {
    code: {"model": ErrorResponse, "description": description}
    for code, description in (
        (400, "Bad request"),
        (401, "Not authorized"),
        (403, "Forbidden"),
        (404, "Not found"),
        (429, "Too many requests"),
    )
}

# Main API router, mounted under the versioned prefix (/api/v1)
api_router = APIRouter(responses=ERROR_RESPONSES)

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(form_router)
api_router.include_router(response_router)
