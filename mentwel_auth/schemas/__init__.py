from .auth_schemas import (
    AccountResponse,
    AuthData,
    DataResponse,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RefreshData,
    RefreshTokenRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenBundle,
    TokenInfo,
)

__all__ = [
    "AccountResponse",
    "AuthData",
    "DataResponse",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "LogoutRequest",
    "MessageResponse",
    "RefreshData",
    "RefreshTokenRequest",
    "RegisterRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "TokenBundle",
    "TokenInfo",
]
