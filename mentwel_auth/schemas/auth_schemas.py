"""
Authentication-related Pydantic schemas for request/response validation.
Field names travel as camelCase on the wire.
"""
from datetime import date, datetime
from typing import Any, Generic, List, Optional, TypeVar, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ..models.account import AccountRole, AccountStatus, Gender

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Registration request schema."""

    email: Optional[EmailStr] = Field(None, description="Email address; email or phone number is required")
    phone_number: Optional[str] = Field(None, min_length=7, max_length=32, description="Phone number")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = Field(None, description="Used to enforce the minimum age")
    gender: Optional[Gender] = None
    country: Optional[str] = Field(None, max_length=100)
    role: str = Field(AccountRole.USER.value, description="user or therapist")
    accept_terms: Union[bool, str, None] = Field(None, description="Must be true")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "client@example.com",
                "password": "Str0ngPassword",
                "firstName": "Ada",
                "lastName": "Obi",
                "dateOfBirth": "1990-01-01",
                "role": "user",
                "acceptTerms": True
            }
        }
    )


class LoginRequest(CamelModel):
    """Login request schema."""

    email: Optional[EmailStr] = Field(None, description="Email address")
    phone_number: Optional[str] = Field(None, description="Phone number")
    password: str = Field(..., min_length=1, description="Account password")


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="JWT refresh token")


class LogoutRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="JWT refresh token to revoke")


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, description="Password reset token from the email link")
    password: str = Field(..., min_length=1, max_length=128, description="New password")


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class AccountResponse(CamelModel):
    """Account information safe to return to clients."""

    id: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: AccountRole
    status: AccountStatus
    is_email_verified: bool
    is_phone_verified: bool
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    country: Optional[str] = None
    accepted_terms_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TokenInfo(CamelModel):
    token: str
    expires_in: str


class TokenBundle(CamelModel):
    access: TokenInfo
    refresh: TokenInfo


class AuthData(CamelModel):
    user: AccountResponse
    tokens: TokenBundle


class RefreshData(CamelModel):
    access_token: str
    expires_in: str


class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    error_code: str
    details: Optional[Union[List[Any], dict]] = None
