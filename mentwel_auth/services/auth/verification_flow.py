"""
Verification flow controller.

Orchestrates registration, login, token refresh, logout, email verification
and password reset as state transitions over the credential store, the token
issuer and the refresh token registry. Messages are dispatched only after the
state change is committed.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union
import structlog

from ...core.config import Settings
from ...core.exceptions import (
    ConflictError,
    ForbiddenError,
    MessageDispatchError,
    UnauthorizedError,
    ValidationError,
)
from ...core.security import (
    PasswordHasher,
    calculate_age,
    generate_phone_verification_code,
    generate_verification_token,
    hash_token,
    utcnow,
    validate_password_strength,
)
from ...interfaces.repository_interface import IAccountRepository
from ...interfaces.token_registry_interface import IRefreshTokenRegistry
from ...models.account import Account, AccountRole, AccountStatus, Gender
from ..messaging.dispatcher import BestEffortDispatcher
from ..messaging import email_templates
from .token_service import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenIssuer, TokenPair

logger = structlog.get_logger()

FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive a password reset link"
RESEND_VERIFICATION_MESSAGE = "If your email is registered, you will receive a verification email"
PASSWORD_RESET_SUCCESS_MESSAGE = "Password reset successful"

REGISTRATION_ROLES = (AccountRole.USER, AccountRole.THERAPIST)
BLOCKED_STATUSES = {
    AccountStatus.SUSPENDED: "Account is suspended",
    AccountStatus.INACTIVE: "Account is inactive",
}


@dataclass(frozen=True)
class AuthResult:
    account: Account
    tokens: TokenPair


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    expires_at: datetime
    session_id: str


def _terms_accepted(value: Union[bool, str, None]) -> bool:
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


def _identity_matches(account: Account, email: Optional[str], phone_number: Optional[str]) -> bool:
    # Every identifier the client supplied must belong to the same account
    if email and (account.email or "").lower() != email.strip().lower():
        return False
    if phone_number and account.phone_number != phone_number.strip():
        return False
    return True


class VerificationFlowController:
    """Credential verification state machine for the auth service."""

    def __init__(
        self,
        settings: Settings,
        account_repository: IAccountRepository,
        token_issuer: TokenIssuer,
        token_registry: IRefreshTokenRegistry,
        password_hasher: PasswordHasher,
        dispatcher: BestEffortDispatcher
    ):
        self.settings = settings
        self.account_repository = account_repository
        self.token_issuer = token_issuer
        self.token_registry = token_registry
        self.password_hasher = password_hasher
        self.dispatcher = dispatcher

    def _check_password_policy(self, password: str) -> None:
        is_valid, errors = validate_password_strength(password, self.settings)
        if not is_valid:
            raise ValidationError("Password does not meet requirements", details=errors)

    async def _issue_session(self, account: Account) -> TokenPair:
        tokens = self.token_issuer.issue_pair(account.id, account.role.value)
        await self.token_registry.record(tokens.refresh_token, account.id, tokens.refresh_expires_at)
        return tokens

    def _verification_url(self, raw_token: str) -> str:
        return f"{self.settings.CLIENT_URL}/verify-email/{raw_token}"

    def _reset_url(self, raw_token: str) -> str:
        return f"{self.settings.CLIENT_URL}/reset-password?token={raw_token}"

    async def register(
        self,
        password: str,
        date_of_birth: Optional[date],
        accept_terms: Union[bool, str, None],
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Union[AccountRole, str] = AccountRole.USER,
        gender: Optional[Union[Gender, str]] = None,
        country: Optional[str] = None
    ) -> AuthResult:
        """
        Register a new account and open its first session.

        Args:
            password: Plain password, checked against the password policy
            date_of_birth: Used to enforce the minimum age
            accept_terms: Must be True or the string "true"
            email: Email identity (lower-cased before storage)
            phone_number: Phone identity
            first_name: First name
            last_name: Last name
            role: "user" or "therapist"
            gender: Optional gender
            country: Country, defaults to the configured default

        Returns:
            AuthResult with the created account and its token pair

        Raises:
            ValidationError: Missing identity, underage, terms not accepted,
                weak password or disallowed role
            ConflictError: Email or phone number already registered
        """
        email = email.strip().lower() if email else None
        phone_number = phone_number.strip() if phone_number else None

        logger.info("Registration attempt", by_email=bool(email), by_phone=bool(phone_number))

        if not email and not phone_number:
            raise ValidationError("Either email or phone number is required")

        if date_of_birth is None:
            raise ValidationError("Valid date of birth is required")
        if calculate_age(date_of_birth) < self.settings.MINIMUM_AGE:
            raise ValidationError(f"You must be at least {self.settings.MINIMUM_AGE} years old")

        if not _terms_accepted(accept_terms):
            raise ValidationError("You must accept the Terms of Service and Privacy Policy")

        try:
            role = AccountRole(role)
        except ValueError:
            raise ValidationError("Invalid role")
        if role not in REGISTRATION_ROLES:
            raise ValidationError("Invalid role")

        try:
            gender = Gender(gender) if gender else None
        except ValueError:
            raise ValidationError("Invalid gender")

        self._check_password_policy(password)

        if await self.account_repository.find_by_identity(email=email, phone=phone_number):
            raise ConflictError("User already exists with this email or phone number")

        verification_token = generate_verification_token() if email else None
        phone_code = generate_phone_verification_code() if phone_number else None

        needs_verification = bool(email) and self.settings.REQUIRE_EMAIL_VERIFICATION
        hashed_password = await self.password_hasher.hash_async(password)

        account = await self.account_repository.create(
            email=email,
            phone_number=phone_number,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=AccountStatus.PENDING_VERIFICATION if needs_verification else AccountStatus.ACTIVE,
            is_email_verified=False,
            is_phone_verified=False,
            verification_token=hash_token(verification_token) if verification_token else None,
            phone_verification_code=hash_token(phone_code) if phone_code else None,
            date_of_birth=date_of_birth,
            gender=gender,
            country=country or self.settings.DEFAULT_COUNTRY,
            accepted_terms_at=utcnow(),
        )

        tokens = await self._issue_session(account)

        if email:
            self.dispatcher.dispatch_best_effort(
                email_templates.verify_email_message(
                    email, first_name, self._verification_url(verification_token)
                )
            )
        if phone_code:
            # SMS transport is not wired; the code stays unconsumed
            logger.info("Phone verification code generated, SMS delivery stubbed", account_id=account.id)

        logger.info("Account registered", account_id=account.id, role=role.value, status=account.status.value)
        return AuthResult(account=account, tokens=tokens)

    async def login(
        self,
        password: str,
        email: Optional[str] = None,
        phone_number: Optional[str] = None
    ) -> AuthResult:
        """
        Authenticate by email or phone number and open a new session.

        Raises:
            UnauthorizedError: Unknown identity or wrong password
            ForbiddenError: Account suspended or inactive, or email not verified
        """
        if not email and not phone_number:
            raise ValidationError("Either email or phone number is required")

        account = await self.account_repository.find_by_identity(email=email, phone=phone_number)
        if not account or not _identity_matches(account, email, phone_number):
            await self.password_hasher.dummy_verify_async()
            logger.info("Login failed", reason="unknown_identity")
            raise UnauthorizedError("Invalid credentials")

        if not await self.password_hasher.verify_async(password, account.hashed_password):
            logger.info("Login failed", reason="bad_password", account_id=account.id)
            raise UnauthorizedError("Invalid credentials")

        if account.status in BLOCKED_STATUSES:
            logger.info("Login refused", reason=account.status.value, account_id=account.id)
            raise ForbiddenError(BLOCKED_STATUSES[account.status])

        if self.settings.REQUIRE_EMAIL_VERIFICATION and account.requires_email_verification:
            logger.info("Login refused", reason="email_not_verified", account_id=account.id)
            raise ForbiddenError("Please verify your email first")

        tokens = await self._issue_session(account)
        logger.info("Login successful", account_id=account.id, session_id=tokens.session_id)
        return AuthResult(account=account, tokens=tokens)

    async def refresh(self, refresh_token: str) -> RefreshResult:
        """
        Mint a new access token for the session a refresh token belongs to.
        The refresh token must verify AND still be recorded in the registry.
        It is not rotated.
        """
        try:
            payload = self.token_issuer.verify(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        except UnauthorizedError as e:
            logger.info("Refresh rejected", reason=e.error_code)
            raise UnauthorizedError("Invalid refresh token")

        if not await self.token_registry.is_live(refresh_token, payload.account_id):
            logger.info("Refresh rejected", reason="not_live", account_id=payload.account_id)
            raise UnauthorizedError("Invalid refresh token")

        account = await self.account_repository.get_by_id(payload.account_id)
        if not account or account.status in BLOCKED_STATUSES:
            logger.info("Refresh rejected", reason="account_unavailable", account_id=payload.account_id)
            raise UnauthorizedError("Invalid refresh token")

        access_token, expires_at = self.token_issuer.issue_access_only(
            account.id, account.role.value, payload.session_id
        )
        logger.info("Access token refreshed", account_id=account.id, session_id=payload.session_id)
        return RefreshResult(access_token=access_token, expires_at=expires_at, session_id=payload.session_id)

    async def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Unknown or already revoked tokens are ignored."""
        if not refresh_token:
            return
        revoked = await self.token_registry.revoke(refresh_token)
        logger.info("Logout", revoked=revoked)

    async def forgot_password(self, email: str) -> str:
        """
        Start a password reset. The response is the same whether or not the
        email is registered.
        """
        account = await self.account_repository.find_by_identity(email=email)
        if account and account.email:
            raw_token = generate_verification_token()
            account.reset_password_token = hash_token(raw_token)
            account.reset_password_expires = utcnow() + timedelta(
                minutes=self.settings.PASSWORD_RESET_EXPIRE_MINUTES
            )
            account = await self.account_repository.save(account)

            self.dispatcher.dispatch_best_effort(
                email_templates.reset_password_message(
                    account.email,
                    account.first_name,
                    self._reset_url(raw_token),
                    self.settings.PASSWORD_RESET_EXPIRE_MINUTES,
                )
            )
            logger.info("Password reset requested", account_id=account.id)
        else:
            logger.info("Password reset requested for unknown identity")

        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> str:
        """
        Replace the password of the account holding a live reset token and
        revoke every session of that account.

        Raises:
            ValidationError: Weak password, or unknown or expired token
        """
        self._check_password_policy(new_password)

        account = await self.account_repository.find_by_reset_token(hash_token(token), not_expired=True)
        if not account:
            raise ValidationError("Invalid or expired token")

        account.hashed_password = await self.password_hasher.hash_async(new_password)
        account.reset_password_token = None
        account.reset_password_expires = None
        account = await self.account_repository.save(account)

        revoked = await self.token_registry.revoke_all(account.id)

        if account.email:
            self.dispatcher.dispatch_best_effort(
                email_templates.password_changed_message(account.email, account.first_name)
            )

        logger.info("Password reset completed", account_id=account.id, sessions_revoked=revoked)
        return PASSWORD_RESET_SUCCESS_MESSAGE

    async def verify_email(self, token: str) -> Account:
        """
        Consume an email verification token.

        Raises:
            ValidationError: No account holds the token
        """
        if not token:
            raise ValidationError("Invalid verification token")

        account = await self.account_repository.find_by_verification_token(hash_token(token))
        if not account:
            raise ValidationError("Invalid verification token")

        account.is_email_verified = True
        account.verification_token = None
        if account.status == AccountStatus.PENDING_VERIFICATION:
            account.status = AccountStatus.ACTIVE
        account = await self.account_repository.save(account)

        self.dispatcher.dispatch_best_effort(
            email_templates.welcome_message(account.email, account.first_name)
        )

        logger.info("Email verified", account_id=account.id)
        return account

    async def resend_verification(self, email: str) -> str:
        """
        Issue a fresh verification token and send it before returning.

        Raises:
            ValidationError: The email is already verified
            MessageDispatchError: The message could not be sent
        """
        account = await self.account_repository.find_by_identity(email=email)
        if not account or not account.email:
            logger.info("Verification resend requested for unknown identity")
            return RESEND_VERIFICATION_MESSAGE

        if account.is_email_verified:
            raise ValidationError("Email already verified")

        raw_token = generate_verification_token()
        account.verification_token = hash_token(raw_token)
        account = await self.account_repository.save(account)

        message = email_templates.verify_email_message(
            account.email, account.first_name, self._verification_url(raw_token)
        )
        try:
            sent = await self.dispatcher.send(message)
        except Exception as e:
            logger.error("Verification email send failed", account_id=account.id, error=str(e))
            raise MessageDispatchError("Failed to send verification email")

        if not sent:
            raise MessageDispatchError("Failed to send verification email")

        logger.info("Verification email resent", account_id=account.id)
        return RESEND_VERIFICATION_MESSAGE

    async def get_current_account(self, access_token: str) -> Account:
        """Resolve the account an access token was issued to."""
        payload = self.token_issuer.verify(access_token, expected_type=ACCESS_TOKEN_TYPE)

        account = await self.account_repository.get_by_id(payload.account_id)
        if not account:
            raise UnauthorizedError("User not found")
        return account
