"""
Authentication endpoints for the auth service.
Implements registration, login, token refresh, logout, password reset and email verification.
"""
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
import structlog

from ..core.config import Settings
from ..core.exceptions import ValidationError
from ..models.account import Account
from ..schemas.auth_schemas import (
    AccountResponse, AuthData, DataResponse, ErrorResponse, ForgotPasswordRequest,
    LoginRequest, LogoutRequest, MessageResponse, RefreshData, RefreshTokenRequest,
    RegisterRequest, ResendVerificationRequest, ResetPasswordRequest, TokenBundle, TokenInfo
)
from ..services.auth.verification_flow import AuthResult, VerificationFlowController
from .deps import get_current_account, get_flow_controller, get_settings_dep, registration_rate_limit

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["authentication"])


def _auth_payload(result: AuthResult, settings: Settings) -> DataResponse[AuthData]:
    return DataResponse[AuthData](
        data=AuthData(
            user=AccountResponse.model_validate(result.account),
            tokens=TokenBundle(
                access=TokenInfo(
                    token=result.tokens.access_token,
                    expires_in=f"{settings.ACCESS_TOKEN_EXPIRE_MINUTES}m"
                ),
                refresh=TokenInfo(
                    token=result.tokens.refresh_token,
                    expires_in=f"{settings.REFRESH_TOKEN_EXPIRE_DAYS}d"
                ),
            ),
        )
    )


@router.post(
    "/register",
    response_model=DataResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse}
    },
    dependencies=[Depends(registration_rate_limit)]
)
async def register(
    payload: RegisterRequest,
    controller: VerificationFlowController = Depends(get_flow_controller),
    settings: Settings = Depends(get_settings_dep)
):
    """Register a new client or therapist account."""
    result = await controller.register(
        email=payload.email,
        phone_number=payload.phone_number,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        date_of_birth=payload.date_of_birth,
        gender=payload.gender,
        country=payload.country,
        role=payload.role,
        accept_terms=payload.accept_terms,
    )
    return _auth_payload(result, settings)


@router.post(
    "/login",
    response_model=DataResponse[AuthData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def login(
    payload: LoginRequest,
    controller: VerificationFlowController = Depends(get_flow_controller),
    settings: Settings = Depends(get_settings_dep)
):
    """Authenticate with email or phone number and password."""
    result = await controller.login(
        email=payload.email,
        phone_number=payload.phone_number,
        password=payload.password,
    )
    return _auth_payload(result, settings)


@router.post(
    "/refresh-token",
    response_model=DataResponse[RefreshData],
    responses={401: {"model": ErrorResponse}}
)
async def refresh_token(
    payload: RefreshTokenRequest,
    controller: VerificationFlowController = Depends(get_flow_controller),
    settings: Settings = Depends(get_settings_dep)
):
    """Exchange a live refresh token for a new access token."""
    result = await controller.refresh(payload.refresh_token)
    return DataResponse[RefreshData](
        data=RefreshData(
            access_token=result.access_token,
            expires_in=f"{settings.ACCESS_TOKEN_EXPIRE_MINUTES}m"
        )
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    payload: LogoutRequest,
    controller: VerificationFlowController = Depends(get_flow_controller)
):
    """Revoke a refresh token."""
    await controller.logout(payload.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    controller: VerificationFlowController = Depends(get_flow_controller)
):
    """Send a password reset link if the email is registered."""
    message = await controller.forgot_password(payload.email)
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}}
)
async def reset_password(
    payload: ResetPasswordRequest,
    controller: VerificationFlowController = Depends(get_flow_controller)
):
    """Set a new password using a reset token and sign out every session."""
    message = await controller.reset_password(payload.token, payload.password)
    return MessageResponse(message=message)


@router.get("/verify-email/{token}", status_code=status.HTTP_302_FOUND)
async def verify_email(
    token: str,
    controller: VerificationFlowController = Depends(get_flow_controller),
    settings: Settings = Depends(get_settings_dep)
):
    """Consume a verification link and redirect to the client."""
    try:
        await controller.verify_email(token)
    except Exception as e:
        if not isinstance(e, ValidationError):
            logger.error("Email verification failed", error_type=type(e).__name__, error=str(e))
        return RedirectResponse(
            url=f"{settings.CLIENT_URL}/verification-error",
            status_code=status.HTTP_302_FOUND
        )

    return RedirectResponse(
        url=f"{settings.CLIENT_URL}/email-verified",
        status_code=status.HTTP_302_FOUND
    )


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def resend_verification(
    payload: ResendVerificationRequest,
    controller: VerificationFlowController = Depends(get_flow_controller)
):
    """Send a fresh verification link to an unverified email."""
    message = await controller.resend_verification(payload.email)
    return MessageResponse(message=message)


@router.get(
    "/me",
    response_model=DataResponse[AccountResponse],
    responses={401: {"model": ErrorResponse}}
)
async def me(current_account: Account = Depends(get_current_account)):
    """Return the account the access token belongs to."""
    return DataResponse[AccountResponse](data=AccountResponse.model_validate(current_account))
