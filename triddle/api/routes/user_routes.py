"""
User Routes (admin only)

GET /users - List users
POST /users - Create user
GET /users/{user_id} - Get user
PUT /users/{user_id} - Update user
DELETE /users/{user_id} - Delete user, their forms and those forms' responses
"""

from fastapi import APIRouter, Depends, status

from triddle.core.auth import hash_password, require_role
from triddle.core.errors import BadRequestError, NotFoundError
from triddle.schemas.schemas import MessageResponse, UserCreate, UserEnvelope, UserListResponse, UserUpdate
from triddle.services.mongo_service import (
    FormService,
    ResponseService,
    UserService,
    get_form_service,
    get_response_service,
    get_user_service,
)
from triddle.utils.pagination import PageParams, build_pagination

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(require_role("admin"))],
)


def _get_or_404(users: UserService, user_id: str) -> dict:
    user = users.get_by_id(user_id)
    if not user:
        raise NotFoundError(f"User not found with id of {user_id}")
    return user


@router.get("", response_model=UserListResponse)
def list_users(page: PageParams = Depends(), users: UserService = Depends(get_user_service)):
    """List all users, newest first."""
    data, total = users.list(skip=page.skip, limit=page.limit)
    return UserListResponse(
        count=len(data),
        total=total,
        pagination=build_pagination(page.page, page.limit, total),
        data=data,
    )


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, users: UserService = Depends(get_user_service)):
    """Create a user with any role."""
    if users.get_by_email(data.email):
        raise BadRequestError("Email already registered")
    user = users.create(data.name, data.email, hash_password(data.password), data.role.value)
    return UserEnvelope(data=user)


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    return UserEnvelope(data=_get_or_404(users, user_id))


@router.put("/{user_id}", response_model=UserEnvelope)
def update_user(user_id: str, data: UserUpdate, users: UserService = Depends(get_user_service)):
    updates = data.model_dump(exclude_none=True, mode="json")
    if not updates:
        raise BadRequestError("No fields to update")
    user = users.update(user_id, updates)
    if not user:
        raise NotFoundError(f"User not found with id of {user_id}")
    return UserEnvelope(data=user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    users: UserService = Depends(get_user_service),
    forms: FormService = Depends(get_form_service),
    responses: ResponseService = Depends(get_response_service),
):
    """Delete a user together with everything they own."""
    _get_or_404(users, user_id)
    form_ids = forms.delete_by_owner(user_id)
    responses.delete_for_forms(form_ids)
    users.delete(user_id)
    return MessageResponse(message="User deleted")
