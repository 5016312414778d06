"""Authentication and authorization dependencies for FastAPI routes."""

from collections.abc import Callable

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from infographic_api.config import Settings
from infographic_api.database import get_db
from infographic_api.errors import AppError, ForbiddenError, InvalidTokenError, UnauthenticatedError
from infographic_api.models.user import User
from infographic_api.repositories import UserRepository
from infographic_api.services.tokens import TokenService

AUTH_COOKIE_NAME = "jwt"
LEGACY_COOKIE_NAME = "token"


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def extract_token(request: Request) -> str | None:
    """Bearer header first, then the auth cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(AUTH_COOKIE_NAME) or request.cookies.get(LEGACY_COOKIE_NAME)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """Resolve the caller from its bearer token. Raises 401 if missing, invalid, or stale."""
    token = extract_token(request)
    if not token:
        raise UnauthenticatedError("You are not logged in. Please log in to get access.")

    try:
        claims = tokens.verify(token)
        user_id = int(claims.subject)
    except (InvalidTokenError, ValueError):
        raise UnauthenticatedError("Invalid or expired token. Please log in again.") from None

    user = UserRepository(db).find_active_by_id(user_id)
    if not user:
        raise UnauthenticatedError("The user belonging to this token no longer exists.")

    if user.changed_password_after(claims.issued_at):
        raise UnauthenticatedError("User recently changed password! Please log in again.")

    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User | None:
    """Same resolution as get_current_user, but anonymous callers get None instead of 401."""
    try:
        return get_current_user(request, db, tokens)
    except AppError:
        return None


def restrict_to(*roles: str) -> Callable[..., User]:
    """Build a dependency that admits only users whose role is in ``roles``."""

    def guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenError("You do not have permission to perform this action")
        return user

    return guard


def set_auth_cookie(response: Response, request: Request, token: str, settings: Settings) -> None:
    """Set the authentication cookie; ``secure`` when the request arrived over TLS."""
    secure = request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=secure,
        max_age=settings.JWT_COOKIE_EXPIRE_DAYS * 24 * 60 * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=AUTH_COOKIE_NAME)
    response.delete_cookie(key=LEGACY_COOKIE_NAME)
