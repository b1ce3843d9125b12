"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class FormStatus(str, Enum):
    draft = "draft"
    published = "published"
    closed = "closed"


class FieldType(str, Enum):
    text = "text"
    textarea = "textarea"
    email = "email"
    number = "number"
    select = "select"
    radio = "radio"
    checkbox = "checkbox"
    date = "date"
    rating = "rating"
    file = "file"


CHOICE_FIELD_TYPES = {FieldType.select, FieldType.radio, FieldType.checkbox}


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class UpdateDetailsRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None

class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

class TokenResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"


# ============================================================
# USER SCHEMAS
# ============================================================

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.user

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime


# ============================================================
# FORM SCHEMAS
# ============================================================

class FormField(BaseModel):
    """One question on a form. ``id`` is what answers are keyed by."""

    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_\-]+$")
    type: FieldType
    label: str = Field(..., min_length=1, max_length=300)
    required: bool = False
    placeholder: Optional[str] = None
    options: List[str] = []
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    max_length: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_options(self) -> "FormField":
        if self.type in CHOICE_FIELD_TYPES and not self.options:
            raise ValueError(f"field '{self.id}' of type {self.type.value} needs options")
        if self.type not in CHOICE_FIELD_TYPES and self.options:
            raise ValueError(f"field '{self.id}' of type {self.type.value} does not take options")
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError(f"field '{self.id}' has min_value greater than max_value")
        return self


def _unique_field_ids(fields: Optional[List[FormField]]) -> Optional[List[FormField]]:
    if fields is None:
        return fields
    seen = set()
    for form_field in fields:
        if form_field.id in seen:
            raise ValueError(f"duplicate field id '{form_field.id}'")
        seen.add(form_field.id)
    return fields


class FormCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    fields: List[FormField] = []

    @field_validator("fields")
    @classmethod
    def check_field_ids(cls, fields):
        return _unique_field_ids(fields)

class FormUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    fields: Optional[List[FormField]] = None

    @field_validator("fields")
    @classmethod
    def check_field_ids(cls, fields):
        return _unique_field_ids(fields)

class FormResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    fields: List[FormField] = []
    status: FormStatus
    slug: str
    response_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


# ============================================================
# RESPONSE (SUBMISSION) SCHEMAS
# ============================================================

class ResponseSubmit(BaseModel):
    answers: Dict[str, Any] = {}

class Respondent(BaseModel):
    user_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None

class SubmissionResponse(BaseModel):
    id: str
    form_id: str
    answers: Dict[str, Any]
    respondent: Respondent = Respondent()
    submitted_at: datetime

class FieldSummary(BaseModel):
    field_id: str
    label: str
    type: FieldType
    answered: int = 0
    option_counts: Optional[Dict[str, int]] = None
    average: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None

class ResponseSummary(BaseModel):
    form_id: str
    total_responses: int
    fields: List[FieldSummary]


# ============================================================
# UPLOAD SCHEMAS
# ============================================================

class UploadedFile(BaseModel):
    filename: str
    url: str
    size: int
    content_type: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class PageRef(BaseModel):
    page: int
    limit: int

class Pagination(BaseModel):
    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None


# Envelopes: {"success": true, "data": ...}

class UserEnvelope(BaseModel):
    success: bool = True
    data: UserResponse

class UserListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[UserResponse]

class FormEnvelope(BaseModel):
    success: bool = True
    data: FormResponse

class FormListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[FormResponse]

class SubmissionEnvelope(BaseModel):
    success: bool = True
    data: SubmissionResponse

class SubmissionListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[SubmissionResponse]

class SummaryEnvelope(BaseModel):
    success: bool = True
    data: ResponseSummary

class UploadEnvelope(BaseModel):
    success: bool = True
    data: UploadedFile
