"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. users      - Accounts (password stored as bcrypt hash)
2. forms      - Form definitions, fields embedded in the document
3. responses  - Submitted answers, one document per submission

Services return plain dicts already passed through serialize_doc, so
routes can hand them straight to the response models.
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from triddle.core.errors import NotFoundError
from triddle.db.mongodb import COLLECTIONS, get_collection


# ============================================================
# HELPERS
# ============================================================

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to a JSON-friendly dict (``_id`` -> ``id``)."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "password_hash":
            continue
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        else:
            out[key] = value
    return out


def serialize_docs(docs: Iterable[dict]) -> List[dict]:
    return [serialize_doc(doc) for doc in docs]


def parse_object_id(value: Any, resource: str = "Resource") -> ObjectId:
    """Parse an id from a path; malformed ids read as missing resources."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"{resource} not found with id of {value}") from None


def slugify(text: str) -> str:
    """Lowercase, dash-separated, ascii-only slug with a random suffix."""
    base = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")[:60].strip("-") or "form"
    return f"{base}-{secrets.token_hex(3)}"


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """Handles user accounts."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    def create(self, name: str, email: str, password_hash: str, role: str = "user") -> dict:
        now = utcnow()
        doc = {
            "name": name,
            "email": email.lower(),
            "password_hash": password_hash,
            "role": role,
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def get_by_id(self, user_id: Any) -> Optional[dict]:
        doc = self.collection.find_one({"_id": parse_object_id(user_id, "User")})
        return serialize_doc(doc)

    def get_by_email(self, email: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"email": email.lower()}))

    def get_credentials(self, email: str) -> Optional[Tuple[dict, str]]:
        """Fetch (user, password_hash) for login; None when the email is unknown."""
        doc = self.collection.find_one({"email": email.lower()})
        if doc is None:
            return None
        return serialize_doc(doc), doc["password_hash"]

    def get_password_hash(self, user_id: Any) -> Optional[str]:
        doc = self.collection.find_one({"_id": parse_object_id(user_id, "User")}, {"password_hash": 1})
        return doc["password_hash"] if doc else None

    def list(self, skip: int = 0, limit: int = 25) -> Tuple[List[dict], int]:
        total = self.collection.count_documents({})
        cursor = self.collection.find({}).sort("created_at", DESCENDING).skip(skip).limit(limit)
        return serialize_docs(cursor), total

    def update(self, user_id: Any, updates: Dict[str, Any]) -> Optional[dict]:
        if "email" in updates and updates["email"]:
            updates["email"] = updates["email"].lower()
        updates["updated_at"] = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(doc)

    def set_password(self, user_id: Any, password_hash: str) -> bool:
        result = self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": {"password_hash": password_hash, "updated_at": utcnow()}},
        )
        return result.matched_count > 0

    def delete(self, user_id: Any) -> bool:
        result = self.collection.delete_one({"_id": parse_object_id(user_id, "User")})
        return result.deleted_count > 0


# ============================================================
# FORMS COLLECTION
# ============================================================

class FormService:
    """Handles form definitions."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["forms"])

    def create(self, owner_id: Any, title: str, description: Optional[str], fields: List[dict]) -> dict:
        now = utcnow()
        doc = {
            "user_id": parse_object_id(owner_id, "User"),
            "title": title,
            "description": description,
            "fields": fields,
            "status": "draft",
            "slug": slugify(title),
            "response_count": 0,
            "created_at": now,
            "updated_at": now,
            "published_at": None,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def get(self, form_id: Any) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"_id": parse_object_id(form_id, "Form")}))

    def get_by_slug(self, slug: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"slug": slug}))

    def list(self, owner_id: Any = None, status: Optional[str] = None, skip: int = 0, limit: int = 25) -> Tuple[List[dict], int]:
        """List forms, newest first. ``owner_id=None`` lists every form."""
        query: Dict[str, Any] = {}
        if owner_id is not None:
            query["user_id"] = parse_object_id(owner_id, "User")
        if status:
            query["status"] = status
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
        return serialize_docs(cursor), total

    def update(self, form_id: Any, updates: Dict[str, Any]) -> Optional[dict]:
        updates["updated_at"] = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": parse_object_id(form_id, "Form")},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(doc)

    def set_status(self, form_id: Any, status: str) -> Optional[dict]:
        updates: Dict[str, Any] = {"status": status}
        if status == "published":
            updates["published_at"] = utcnow()
        return self.update(form_id, updates)

    def increment_responses(self, form_id: Any, amount: int = 1) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(form_id, "Form")},
            {"$inc": {"response_count": amount}},
        )

    def delete(self, form_id: Any) -> bool:
        result = self.collection.delete_one({"_id": parse_object_id(form_id, "Form")})
        return result.deleted_count > 0

    def delete_by_owner(self, owner_id: Any) -> List[str]:
        """Delete all forms of a user; returns the deleted form ids."""
        owner = parse_object_id(owner_id, "User")
        form_ids = [doc["_id"] for doc in self.collection.find({"user_id": owner}, {"_id": 1})]
        if form_ids:
            self.collection.delete_many({"_id": {"$in": form_ids}})
        return [str(form_id) for form_id in form_ids]


# ============================================================
# RESPONSES COLLECTION
# ============================================================

class ResponseService:
    """Handles form submissions."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["responses"])

    def create(self, form_id: Any, answers: Dict[str, Any], respondent: Dict[str, Any]) -> dict:
        doc = {
            "form_id": parse_object_id(form_id, "Form"),
            "answers": answers,
            "respondent": respondent,
            "submitted_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def get(self, response_id: Any) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"_id": parse_object_id(response_id, "Response")}))

    def list_for_form(self, form_id: Any, skip: int = 0, limit: int = 25) -> Tuple[List[dict], int]:
        query = {"form_id": parse_object_id(form_id, "Form")}
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("submitted_at", DESCENDING).skip(skip).limit(limit)
        return serialize_docs(cursor), total

    def iter_answers(self, form_id: Any) -> Iterator[Dict[str, Any]]:
        """Stream only the answers of every submission to a form."""
        cursor = self.collection.find({"form_id": parse_object_id(form_id, "Form")}, {"answers": 1})
        for doc in cursor:
            yield doc.get("answers") or {}

    def delete(self, response_id: Any) -> bool:
        result = self.collection.delete_one({"_id": parse_object_id(response_id, "Response")})
        return result.deleted_count > 0

    def delete_for_forms(self, form_ids: Iterable[Any]) -> int:
        ids = [parse_object_id(form_id, "Form") for form_id in form_ids]
        if not ids:
            return 0
        return self.collection.delete_many({"form_id": {"$in": ids}}).deleted_count


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

def get_user_service() -> UserService:
    return UserService()


def get_form_service() -> FormService:
    return FormService()


def get_response_service() -> ResponseService:
    return ResponseService()
