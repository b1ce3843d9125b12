"""
Triddle Form Builder API
REST backend for building forms and collecting their responses.

Architecture:
- FastAPI app with an explicit middleware pipeline (triddle.middleware)
- MongoDB: users, forms, responses
- uvicorn server with a graceful-shutdown lifecycle (triddle.server)
"""

__version__ = "1.0.0"
