"""
Schemas module - Request/Response schemas for API endpoints.

All schemas live in triddle.schemas.schemas:
- Request schemas (what the API accepts)
- Response envelopes (what the API returns)
"""
