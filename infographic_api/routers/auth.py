"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from infographic_api.config import Settings
from infographic_api.database import get_db
from infographic_api.dependencies import (
    clear_auth_cookie,
    get_current_user,
    get_settings_from_app,
    get_token_service,
    set_auth_cookie,
)
from infographic_api.errors import ValidationError
from infographic_api.models.user import User
from infographic_api.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateMeRequest,
    UpdatePasswordRequest,
    UserData,
    UserResponse,
)
from infographic_api.schemas.user import UserOut
from infographic_api.services.auth import AuthService
from infographic_api.services.tokens import TokenService

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _token_response(
    user: User,
    request: Request,
    response: Response,
    tokens: TokenService,
    settings: Settings,
) -> AuthResponse:
    """Issue a session token, set it as a cookie, and echo it in the body."""
    token = tokens.issue(user.id)
    set_auth_cookie(response, request, token, settings)
    return AuthResponse(token=token, data=UserData(user=UserOut.model_validate(user)))


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    """Register a new user account."""
    user = auth_service.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        base_url=_base_url(request),
        phone=body.phone,
        gender=body.gender,
    )
    return _token_response(user, request, response, tokens, settings)


@router.post("/login", response_model=AuthResponse)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    """Authenticate and receive a JWT token."""
    if not body.email or not body.password:
        raise ValidationError("Please provide email and password")
    user = auth_service.authenticate(db, body.email, body.password)
    return _token_response(user, request, response, tokens, settings)


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the auth cookie."""
    clear_auth_cookie(response)
    return MessageResponse()


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Send a password reset link to the account's email address."""
    message = auth_service.request_password_reset(db, body.email, _base_url(request))
    return MessageResponse(message=message)


@router.patch("/reset-password/{token}", response_model=AuthResponse)
def reset_password(
    token: str,
    request: Request,
    response: Response,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    """Reset password using a valid token. Returns a JWT for auto-login."""
    user = auth_service.reset_password(db, token, body.password)
    return _token_response(user, request, response, tokens, settings)


@router.patch("/update-password", response_model=AuthResponse)
def update_password(
    request: Request,
    response: Response,
    body: UpdatePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    """Change the password of the logged-in user; older tokens stop working."""
    user = auth_service.update_password(db, user, body.current_password, body.new_password)
    return _token_response(user, request, response, tokens, settings)


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse(data=UserData(user=UserOut.model_validate(user)))


@router.patch("/update-me", response_model=UserResponse)
def update_me(
    body: UpdateMeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Update name and email. Password changes go through /update-password."""
    if body.password or body.password_confirm:
        raise ValidationError("This route is not for password updates. Please use /update-password.")
    user = auth_service.update_profile(db, user, name=body.name, email=body.email)
    return UserResponse(data=UserData(user=UserOut.model_validate(user)))


@router.delete("/delete-me", status_code=204, response_class=Response)
def delete_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Deactivate the logged-in account."""
    auth_service.deactivate(db, user)
    return Response(status_code=204)


@router.get("/verify-email/{token}", response_model=MessageResponse)
def verify_email(
    token: str,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    auth_service.verify_email(db, token)
    return MessageResponse(message="Email verified successfully!")
