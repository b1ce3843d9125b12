"""
Form Routes

GET /forms - List own forms (admins see all)
POST /forms - Create form (starts as draft)
GET /forms/public/{slug} - Get a published form (no auth)
GET /forms/{form_id} - Get form
PUT /forms/{form_id} - Update form
DELETE /forms/{form_id} - Delete form and its responses
POST /forms/{form_id}/publish - Start accepting responses
POST /forms/{form_id}/close - Stop accepting responses
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from triddle.core.auth import get_current_user, is_owner_or_admin
from triddle.core.errors import BadRequestError, ForbiddenError, NotFoundError
from triddle.schemas.schemas import (
    FormCreate,
    FormEnvelope,
    FormListResponse,
    FormStatus,
    FormUpdate,
    MessageResponse,
)
from triddle.services.mongo_service import FormService, ResponseService, get_form_service, get_response_service
from triddle.utils.pagination import PageParams, build_pagination

router = APIRouter(prefix="/forms", tags=["Forms"])


def get_owned_form(forms: FormService, form_id: str, user: dict) -> dict:
    """Fetch a form the user may manage: 404 when missing, 403 when not theirs."""
    form = forms.get(form_id)
    if not form:
        raise NotFoundError(f"Form not found with id of {form_id}")
    if not is_owner_or_admin(user, form["user_id"]):
        raise ForbiddenError(f"User {user['id']} is not authorized to access this form")
    return form


@router.get("", response_model=FormListResponse)
def list_forms(
    page: PageParams = Depends(),
    form_status: Optional[FormStatus] = Query(None, alias="status"),
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    """List forms owned by the current user, newest first."""
    owner_id = None if user.get("role") == "admin" else user["id"]
    data, total = forms.list(
        owner_id=owner_id,
        status=form_status.value if form_status else None,
        skip=page.skip,
        limit=page.limit,
    )
    return FormListResponse(
        count=len(data),
        total=total,
        pagination=build_pagination(page.page, page.limit, total),
        data=data,
    )


@router.post("", response_model=FormEnvelope, status_code=status.HTTP_201_CREATED)
def create_form(
    data: FormCreate,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    """Create a draft form owned by the current user."""
    form = forms.create(
        owner_id=user["id"],
        title=data.title,
        description=data.description,
        fields=[form_field.model_dump(mode="json") for form_field in data.fields],
    )
    return FormEnvelope(data=form)


@router.get("/public/{slug}", response_model=FormEnvelope)
def get_public_form(slug: str, forms: FormService = Depends(get_form_service)):
    """Fetch a published form by slug, for respondents."""
    form = forms.get_by_slug(slug)
    if not form or form["status"] != FormStatus.published.value:
        raise NotFoundError(f"Form not found with slug of {slug}")
    return FormEnvelope(data=form)


@router.get("/{form_id}", response_model=FormEnvelope)
def get_form(
    form_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    return FormEnvelope(data=get_owned_form(forms, form_id, user))


@router.put("/{form_id}", response_model=FormEnvelope)
def update_form(
    form_id: str,
    data: FormUpdate,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    """Update title, description and/or fields."""
    get_owned_form(forms, form_id, user)
    updates = data.model_dump(exclude_none=True, mode="json")
    if not updates:
        raise BadRequestError("No fields to update")
    return FormEnvelope(data=forms.update(form_id, updates))


@router.delete("/{form_id}", response_model=MessageResponse)
def delete_form(
    form_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    """Delete a form and every response submitted to it."""
    get_owned_form(forms, form_id, user)
    removed = responses.delete_for_forms([form_id])
    forms.delete(form_id)
    return MessageResponse(message=f"Form deleted with {removed} response(s)")


@router.post("/{form_id}/publish", response_model=FormEnvelope)
def publish_form(
    form_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    """Publish a form so it accepts responses. Needs at least one field."""
    form = get_owned_form(forms, form_id, user)
    if not form.get("fields"):
        raise BadRequestError("Cannot publish a form without fields")
    return FormEnvelope(data=forms.set_status(form_id, FormStatus.published.value))


@router.post("/{form_id}/close", response_model=FormEnvelope)
def close_form(
    form_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
):
    """Stop accepting responses."""
    get_owned_form(forms, form_id, user)
    return FormEnvelope(data=forms.set_status(form_id, FormStatus.closed.value))
