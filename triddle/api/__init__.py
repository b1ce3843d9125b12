"""
API module - FastAPI routers, documentation routes.

Usage:
    from triddle.api.routes import api_router
    app.include_router(api_router, prefix="/api/v1")
"""
