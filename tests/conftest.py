"""
Pytest configuration for Triddle API tests.

Sets up the test environment and global fixtures. MongoDB is never
contacted: services are replaced by MagicMocks via dependency_overrides
and the lifespan only runs where a test asks for it.
"""
import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

# Set test environment variables before the app module is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_TIMEOUT_MS", "200")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")

from triddle.core.auth import get_current_user, get_optional_user  # noqa: E402
from triddle.core.config import Settings  # noqa: E402
from triddle.main import create_app  # noqa: E402
from triddle.services.mongo_service import (  # noqa: E402
    get_form_service,
    get_response_service,
    get_user_service,
)

USER_ID = "6531f0a1b2c3d4e5f6a7b8c9"
ADMIN_ID = "6531f0a1b2c3d4e5f6a7b8ca"
OTHER_ID = "6531f0a1b2c3d4e5f6a7b8cb"
FORM_ID = "6531f0a1b2c3d4e5f6a7b8d0"
RESPONSE_ID = "6531f0a1b2c3d4e5f6a7b8e0"
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def public_dir(tmp_path):
    directory = tmp_path / "public"
    directory.mkdir()
    (directory / "index.html").write_text("<h1>Triddle</h1>")
    (directory / "robots.txt").write_text("User-agent: *\n")
    return directory


@pytest.fixture
def settings(public_dir):
    return Settings(
        environment="testing",
        port=5000,
        public_dir=public_dir,
        cors_origins="http://localhost:3000",
        mongodb_timeout_ms=200,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


# ============================================================
# SERVICE MOCKS
# ============================================================

@pytest.fixture
def users(app):
    """Mock UserService injected into every route."""
    mock = MagicMock()
    app.dependency_overrides[get_user_service] = lambda: mock
    return mock


@pytest.fixture
def forms(app):
    mock = MagicMock()
    app.dependency_overrides[get_form_service] = lambda: mock
    return mock


@pytest.fixture
def responses(app):
    mock = MagicMock()
    app.dependency_overrides[get_response_service] = lambda: mock
    return mock


# ============================================================
# SAMPLE DOCUMENTS
# ============================================================

@pytest.fixture
def user_doc():
    return {
        "id": USER_ID,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "role": "user",
        "created_at": NOW,
    }


@pytest.fixture
def admin_doc():
    return {
        "id": ADMIN_ID,
        "name": "Grace Hopper",
        "email": "grace@example.com",
        "role": "admin",
        "created_at": NOW,
    }


@pytest.fixture
def form_fields():
    return [
        {"id": "name", "type": "text", "label": "Name", "required": True, "max_length": 50},
        {"id": "email", "type": "email", "label": "Email"},
        {"id": "color", "type": "radio", "label": "Favourite colour", "options": ["red", "green", "blue"]},
        {"id": "score", "type": "rating", "label": "Score"},
    ]


@pytest.fixture
def make_form(form_fields):
    """Build a serialized form document; keyword arguments override fields."""
    def _make(**overrides):
        form = {
            "id": FORM_ID,
            "user_id": USER_ID,
            "title": "Customer feedback",
            "description": None,
            "fields": form_fields,
            "status": "draft",
            "slug": "customer-feedback-a1b2c3",
            "response_count": 0,
            "created_at": NOW,
            "updated_at": NOW,
            "published_at": None,
        }
        form.update(overrides)
        return form
    return _make


@pytest.fixture
def make_submission():
    def _make(**overrides):
        submission = {
            "id": RESPONSE_ID,
            "form_id": FORM_ID,
            "answers": {"name": "Ada", "score": 4},
            "respondent": {"user_id": None, "ip": "testclient", "user_agent": "testclient"},
            "submitted_at": NOW,
        }
        submission.update(overrides)
        return submission
    return _make


# ============================================================
# AUTH OVERRIDES
# ============================================================

@pytest.fixture
def as_user(app, user_doc):
    """Authenticate every request as a regular user."""
    app.dependency_overrides[get_current_user] = lambda: user_doc
    app.dependency_overrides[get_optional_user] = lambda: user_doc
    return user_doc


@pytest.fixture
def as_admin(app, admin_doc):
    app.dependency_overrides[get_current_user] = lambda: admin_doc
    app.dependency_overrides[get_optional_user] = lambda: admin_doc
    return admin_doc
