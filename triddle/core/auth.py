"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes

A token is accepted from the ``Authorization: Bearer`` header first and
from the ``token`` cookie otherwise.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Cookie, Depends, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from triddle.core.config import get_settings
from triddle.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from triddle.services.mongo_service import UserService, get_user_service

TOKEN_COOKIE = "token"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing headers fall through to the cookie
bearer_scheme = HTTPBearer(scheme_name="bearerAuth", bearerFormat="JWT", auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def set_token_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.jwt_cookie_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_token_cookie(response: Response) -> None:
    response.delete_cookie(TOKEN_COOKIE)


def _resolve_user(token: Optional[str], users: UserService) -> Optional[dict]:
    if not token:
        return None
    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        return users.get_by_id(payload["sub"])
    except NotFoundError:
        return None


def _extract_token(credentials: Optional[HTTPAuthorizationCredentials], cookie_token: Optional[str]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return cookie_token


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Cookie(None, include_in_schema=False),
    users: UserService = Depends(get_user_service),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        def route(user: dict = Depends(get_current_user)):
            return user
    """
    user = _resolve_user(_extract_token(credentials, token), users)
    if user is None:
        raise UnauthorizedError()
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Cookie(None, include_in_schema=False),
    users: UserService = Depends(get_user_service),
) -> Optional[dict]:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    return _resolve_user(_extract_token(credentials, token), users)


def require_role(*roles: str) -> Callable:
    """Dependency factory - Require one of the given roles."""

    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise ForbiddenError(f"User role {user.get('role')} is not authorized to access this route")
        return user

    return checker


def is_owner_or_admin(user: dict, owner_id: str) -> bool:
    return user.get("role") == "admin" or str(user.get("id")) == str(owner_id)
