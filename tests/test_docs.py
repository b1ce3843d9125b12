"""
Tests for the API documentation routes.

Tests cover:
- Raw schema (info, servers, security scheme, paths relative to /api/v1)
- Swagger UI page
- DOCS_ENABLED=false
- Schema generation failure aborts app creation
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from triddle.api.docs import server_list
from triddle.core.config import Settings
from triddle.core.errors import DocumentationError
from triddle.main import create_app


class TestSwaggerJson:
    def test_schema_info(self, client):
        schema = client.get("/api-docs/swagger.json").json()

        assert schema["info"]["title"] == "Triddle Form Builder API"
        assert schema["info"]["version"] == "1.0.0"
        assert schema["info"]["contact"]["email"] == "support@triddle.com"

    def test_current_server_listed_first(self, client, settings):
        schema = client.get("/api-docs/swagger.json").json()

        urls = [server["url"] for server in schema["servers"]]
        assert urls[0] == settings.current_server_url == "http://localhost:5000/api/v1"
        assert "https://triddle-backend-ruddy.vercel.app/api/v1" in urls

    def test_paths_relative_to_api_prefix(self, client):
        paths = client.get("/api-docs/swagger.json").json()["paths"]

        assert "/auth/login" in paths
        assert "/forms/{form_id}/publish" in paths
        assert "/responses/forms/{form_id}/summary" in paths
        assert not any(path.startswith("/api/v1") for path in paths)
        assert "/health" not in paths
        assert "/api-docs" not in paths

    def test_bearer_auth_scheme(self, client):
        schema = client.get("/api-docs/swagger.json").json()

        scheme = schema["components"]["securitySchemes"]["bearerAuth"]
        assert scheme == {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        assert {"bearerAuth": []} in schema["paths"]["/auth/me"]["get"]["security"]
        assert "security" not in schema["paths"]["/auth/login"]["post"]

    def test_schema_built_once(self, app, client):
        assert client.get("/api-docs/swagger.json").json() is not None
        assert app.openapi() is app.state.openapi_schema


class TestSwaggerUi:
    def test_page_options(self, client):
        response = client.get("/api-docs")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        html = response.text
        assert "<title>Triddle API Documentation</title>" in html
        assert '"persistAuthorization": true' in html
        assert '"tryItOutEnabled": true' in html
        assert '"filter": true' in html
        assert '"validatorUrl": null' in html
        assert ".swagger-ui .topbar { display: none }" in html
        assert "/api-docs/swagger.json" in html


class TestDocsSettings:
    def test_docs_disabled(self, public_dir):
        app = create_app(Settings(public_dir=public_dir, docs_enabled=False))
        client = TestClient(app)

        assert client.get("/api-docs").status_code == 404
        assert client.get("/api-docs/swagger.json").status_code == 404

    def test_production_server_first_in_production(self, public_dir):
        settings = Settings(public_dir=public_dir, environment="production")

        assert server_list(settings)[0]["url"] == "https://triddle-backend-ruddy.vercel.app/api/v1"
        assert len(server_list(settings)) == 2

    def test_public_base_url_overrides_current_server(self, public_dir):
        settings = Settings(public_dir=public_dir, public_base_url="https://api.triddle.test/api/v1/")

        assert server_list(settings)[0] == {
            "url": "https://api.triddle.test/api/v1",
            "description": "Current environment server",
        }

    def test_schema_failure_aborts_startup(self, settings):
        with patch("triddle.api.docs.get_openapi", side_effect=RuntimeError("bad model")):
            with pytest.raises(DocumentationError, match="bad model"):
                create_app(settings)
