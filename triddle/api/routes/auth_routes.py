"""
Authentication Routes

POST /auth/register - Register new user
POST /auth/login - Login and get JWT token
GET /auth/logout - Clear the token cookie
GET /auth/me - Get current user info
PUT /auth/updatedetails - Update name/email
PUT /auth/updatepassword - Change password
"""

from fastapi import APIRouter, Depends, Response, status

from triddle.core.auth import (
    clear_token_cookie,
    create_access_token,
    get_current_user,
    hash_password,
    set_token_cookie,
    verify_password,
)
from triddle.core.errors import BadRequestError, UnauthorizedError
from triddle.schemas.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
    UserEnvelope,
)
from triddle.services.mongo_service import UserService, get_user_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(response: Response, user: dict) -> TokenResponse:
    token = create_access_token(user["id"], user["role"])
    set_token_cookie(response, token)
    return TokenResponse(token=token)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, response: Response, users: UserService = Depends(get_user_service)):
    """
    Register a new user account.

    Returns a token straight away; the same token is set as a cookie.
    """
    if users.get_by_email(request.email):
        raise BadRequestError("Email already registered")

    user = users.create(request.name, request.email, hash_password(request.password))
    return _token_response(response, user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, response: Response, users: UserService = Depends(get_user_service)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    credentials = users.get_credentials(request.email)
    if not credentials:
        raise UnauthorizedError("Invalid credentials")

    user, password_hash = credentials
    if not verify_password(request.password, password_hash):
        raise UnauthorizedError("Invalid credentials")

    return _token_response(response, user)


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Clear the token cookie. Bearer tokens simply expire."""
    clear_token_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserEnvelope)
def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return UserEnvelope(data=user)


@router.put("/updatedetails", response_model=UserEnvelope)
def update_details(
    request: UpdateDetailsRequest,
    user: dict = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Update the current user's name and/or email."""
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise BadRequestError("No fields to update")

    if "email" in updates:
        existing = users.get_by_email(updates["email"])
        if existing and existing["id"] != user["id"]:
            raise BadRequestError("Email already registered")

    return UserEnvelope(data=users.update(user["id"], updates))


@router.put("/updatepassword", response_model=TokenResponse)
def update_password(
    request: UpdatePasswordRequest,
    response: Response,
    user: dict = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Change password; returns a fresh token."""
    password_hash = users.get_password_hash(user["id"])
    if not password_hash or not verify_password(request.current_password, password_hash):
        raise UnauthorizedError("Password is incorrect")

    users.set_password(user["id"], hash_password(request.new_password))
    return _token_response(response, user)
