"""API router for account registration, login and password reset."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....application.services.auth_service import AuthService
from ....core.dependencies import get_auth_service
from ....domain.errors import (
    AuthError,
    Conflict,
    EmailNotConfirmed,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationFailure,
)
from ....domain.models import AccountView
from ..dependencies import get_current_account
from ..schemas.auth import (
    AccountResponse,
    ConfirmEmailRequest,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

_STATUS_CODES = {
    ValidationFailure: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidOrExpiredToken: status.HTTP_400_BAD_REQUEST,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    EmailNotConfirmed: status.HTTP_403_FORBIDDEN,
}


def _http_error(exc: AuthError) -> HTTPException:
    return HTTPException(status_code=_STATUS_CODES[type(exc)], detail=exc.message)


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    """Register a new account and email a confirmation link."""
    try:
        view = await auth_service.register(request.email, request.password, request.name)
    except (ValidationFailure, Conflict) as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_view(view)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        result = await auth_service.login(request.email, request.password)
    except (InvalidCredentials, EmailNotConfirmed) as exc:
        raise _http_error(exc) from exc
    return LoginResponse(access_token=result.access_token, token_type=result.token_type)


@router.post("/confirm-email", response_model=MessageResponse)
async def confirm_email(
    request: ConfirmEmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        await auth_service.confirm_email(request.token)
    except InvalidOrExpiredToken as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Email confirmed successfully")


@router.get("/confirm-email", response_model=MessageResponse)
async def confirm_email_by_link(
    token: str = Query(..., min_length=1),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Target of the link sent in the confirmation email."""
    try:
        await auth_service.confirm_email(token)
    except InvalidOrExpiredToken as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Email confirmed successfully via link!")


@router.post("/resend-confirmation", response_model=MessageResponse)
async def resend_confirmation(
    request: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    # Same answer whether or not the email belongs to an unconfirmed account.
    await auth_service.resend_confirmation(request.email)
    return MessageResponse(message="If the email exists, a confirmation email has been sent.")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.forgot_password(request.email)
    return MessageResponse(message="Password reset email sent if user exists")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        await auth_service.reset_password(request.token, request.new_password)
    except (ValidationFailure, InvalidOrExpiredToken) as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=AccountResponse)
async def get_profile(account: AccountView = Depends(get_current_account)) -> AccountResponse:
    """Get the account behind the bearer token."""
    return AccountResponse.from_view(account)
