"""
Tests for the MongoDB services and helpers.

Collections are MagicMocks, so these check the queries the services send
and how documents are serialized.
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from unittest.mock import MagicMock, patch

from triddle.core.errors import NotFoundError
from triddle.services.mongo_service import (
    FormService,
    ResponseService,
    UserService,
    parse_object_id,
    serialize_doc,
    slugify,
)
from triddle.utils.pagination import PageParams, build_pagination

OID = ObjectId("6531f0a1b2c3d4e5f6a7b8c9")


@pytest.fixture
def collection():
    mock = MagicMock()
    with patch("triddle.services.mongo_service.get_collection", return_value=mock):
        yield mock


class TestHelpers:
    def test_serialize_doc(self):
        doc = {"_id": OID, "user_id": OID, "password_hash": "x", "answers": {"_id": "kept"}}

        assert serialize_doc(doc) == {"id": str(OID), "user_id": str(OID), "answers": {"_id": "kept"}}

    def test_serialize_none(self):
        assert serialize_doc(None) is None

    def test_parse_object_id(self):
        assert parse_object_id(str(OID)) == OID
        assert parse_object_id(OID) is OID

    def test_malformed_id_reads_as_not_found(self):
        with pytest.raises(NotFoundError) as exc_info:
            parse_object_id("abc", "Form")

        assert exc_info.value.message == "Form not found with id of abc"

    def test_slugify(self):
        slug = slugify("Customer Feedback: Q1 / 2025!")

        base, suffix = slug.rsplit("-", 1)
        assert base == "customer-feedback-q1-2025"
        assert len(suffix) == 6

    def test_slugify_non_ascii_title(self):
        assert slugify("¿¿¿").startswith("form-")


class TestPagination:
    def test_skip(self):
        assert PageParams(page=3, limit=10).skip == 20

    def test_middle_page(self):
        assert build_pagination(2, 10, 35) == {
            "next": {"page": 3, "limit": 10},
            "prev": {"page": 1, "limit": 10},
        }

    def test_last_page(self):
        assert build_pagination(4, 10, 35) == {"prev": {"page": 3, "limit": 10}}


class TestUserService:
    def test_create_lowercases_email(self, collection):
        collection.insert_one.return_value.inserted_id = OID

        user = UserService().create("Ada", "Ada@Example.COM", "hash")

        inserted = collection.insert_one.call_args.args[0]
        assert inserted["email"] == "ada@example.com"
        assert inserted["role"] == "user"
        assert user["id"] == str(OID)
        assert "password_hash" not in user

    def test_get_credentials(self, collection):
        collection.find_one.return_value = {"_id": OID, "email": "ada@example.com", "password_hash": "h"}

        user, password_hash = UserService().get_credentials("ADA@example.com")

        collection.find_one.assert_called_once_with({"email": "ada@example.com"})
        assert password_hash == "h"
        assert "password_hash" not in user

    def test_update_returns_new_document(self, collection):
        collection.find_one_and_update.return_value = {"_id": OID, "name": "Ada"}

        UserService().update(str(OID), {"name": "Ada"})

        query, update = collection.find_one_and_update.call_args.args
        assert query == {"_id": OID}
        assert update["$set"]["name"] == "Ada"
        assert "updated_at" in update["$set"]
        assert collection.find_one_and_update.call_args.kwargs["return_document"] is ReturnDocument.AFTER


class TestFormService:
    def test_create_draft(self, collection):
        collection.insert_one.return_value.inserted_id = OID

        form = FormService().create(str(OID), "My Form", None, [])

        assert form["status"] == "draft"
        assert form["response_count"] == 0
        assert form["slug"].startswith("my-form-")
        assert form["user_id"] == str(OID)

    def test_list_filters(self, collection):
        collection.count_documents.return_value = 0
        collection.find.return_value.sort.return_value.skip.return_value.limit.return_value = []

        FormService().list(owner_id=str(OID), status="published", skip=25, limit=25)

        collection.count_documents.assert_called_once_with({"user_id": OID, "status": "published"})
        collection.find.return_value.sort.return_value.skip.assert_called_once_with(25)

    def test_publish_sets_timestamp(self, collection):
        collection.find_one_and_update.return_value = {"_id": OID, "status": "published"}

        FormService().set_status(str(OID), "published")

        updates = collection.find_one_and_update.call_args.args[1]["$set"]
        assert updates["status"] == "published"
        assert isinstance(updates["published_at"], datetime)
        assert updates["published_at"].tzinfo is timezone.utc

    def test_delete_by_owner(self, collection):
        other = ObjectId()
        collection.find.return_value = [{"_id": OID}, {"_id": other}]

        deleted = FormService().delete_by_owner(str(OID))

        assert deleted == [str(OID), str(other)]
        collection.delete_many.assert_called_once_with({"_id": {"$in": [OID, other]}})


class TestResponseService:
    def test_delete_for_no_forms(self, collection):
        assert ResponseService().delete_for_forms([]) == 0
        collection.delete_many.assert_not_called()

    def test_iter_answers(self, collection):
        collection.find.return_value = [{"_id": OID, "answers": {"q": 1}}, {"_id": OID}]

        assert list(ResponseService().iter_answers(str(OID))) == [{"q": 1}, {}]
