"""
Response Routes

POST /responses/forms/{form_id} - Submit answers to a published form (no auth)
GET /responses/forms/{form_id} - List responses of an owned form
GET /responses/forms/{form_id}/summary - Per-field aggregates
POST /responses/upload - Upload a file for a 'file' field (no auth)
GET /responses/{response_id} - Get one response
DELETE /responses/{response_id} - Delete one response
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from triddle.api.routes.form_routes import get_owned_form
from triddle.core.auth import get_current_user, get_optional_user
from triddle.core.errors import BadRequestError, NotFoundError
from triddle.schemas.schemas import (
    FormField,
    FormStatus,
    MessageResponse,
    ResponseSubmit,
    SubmissionEnvelope,
    SubmissionListResponse,
    SummaryEnvelope,
    UploadEnvelope,
)
from triddle.services.answers import summarize_answers, validate_answers
from triddle.services.mongo_service import FormService, ResponseService, get_form_service, get_response_service
from triddle.utils.file_upload import save_upload
from triddle.utils.pagination import PageParams, build_pagination

router = APIRouter(prefix="/responses", tags=["Responses"])


def _form_fields(form: dict):
    return [FormField.model_validate(form_field) for form_field in form.get("fields", [])]


@router.post("/forms/{form_id}", response_model=SubmissionEnvelope, status_code=status.HTTP_201_CREATED)
def submit_response(
    form_id: str,
    submission: ResponseSubmit,
    request: Request,
    user: Optional[dict] = Depends(get_optional_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    """
    Submit answers to a published form.

    Answers are keyed by field id and checked against the form's fields;
    failures come back as 400 with one message per field in ``details``.
    """
    form = forms.get(form_id)
    if not form:
        raise NotFoundError(f"Form not found with id of {form_id}")
    if form["status"] != FormStatus.published.value:
        raise BadRequestError("Form is not accepting responses")

    answers = validate_answers(_form_fields(form), submission.answers)
    respondent = {
        "user_id": user["id"] if user else None,
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
    saved = responses.create(form_id, answers, respondent)
    forms.increment_responses(form_id)
    return SubmissionEnvelope(data=saved)


@router.get("/forms/{form_id}", response_model=SubmissionListResponse)
def list_responses(
    form_id: str,
    page: PageParams = Depends(),
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    """List responses of a form the current user manages, newest first."""
    get_owned_form(forms, form_id, user)
    data, total = responses.list_for_form(form_id, skip=page.skip, limit=page.limit)
    return SubmissionListResponse(
        count=len(data),
        total=total,
        pagination=build_pagination(page.page, page.limit, total),
        data=data,
    )


@router.get("/forms/{form_id}/summary", response_model=SummaryEnvelope)
def summarize_responses(
    form_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    """Aggregate all responses of a form per field."""
    form = get_owned_form(forms, form_id, user)
    summary = summarize_answers(_form_fields(form), responses.iter_answers(form_id))
    summary["form_id"] = form["id"]
    return SummaryEnvelope(data=summary)


@router.post("/upload", response_model=UploadEnvelope, status_code=status.HTTP_201_CREATED)
def upload_file(request: Request, file: UploadFile = File(...)):
    """Store a file and return the URL to submit as a 'file' answer."""
    settings = request.app.state.settings
    stored = save_upload(file, settings.uploads_path, settings.max_upload_mb)
    return UploadEnvelope(data=stored)


def _get_managed_response(response_id: str, user: dict, forms: FormService, responses: ResponseService) -> dict:
    saved = responses.get(response_id)
    if not saved:
        raise NotFoundError(f"Response not found with id of {response_id}")
    get_owned_form(forms, saved["form_id"], user)
    return saved


@router.get("/{response_id}", response_model=SubmissionEnvelope)
def get_response(
    response_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    return SubmissionEnvelope(data=_get_managed_response(response_id, user, forms, responses))


@router.delete("/{response_id}", response_model=MessageResponse)
def delete_response(
    response_id: str,
    user: dict = Depends(get_current_user),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    saved = _get_managed_response(response_id, user, forms, responses)
    responses.delete(response_id)
    forms.increment_responses(saved["form_id"], -1)
    return MessageResponse(message="Response deleted")
