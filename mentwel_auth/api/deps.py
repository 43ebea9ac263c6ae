"""
Dependency injection for FastAPI endpoints.
Resolves services from the container attached to the application.
"""
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import structlog

from ..container import Container
from ..core.config import Settings
from ..core.exceptions import ForbiddenError, TooManyRequestsError, UnauthorizedError
from ..core.security import RateLimiter
from ..models.account import Account, AccountRole
from ..services.auth.verification_flow import VerificationFlowController

logger = structlog.get_logger()
security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_flow_controller(container: Container = Depends(get_container)) -> VerificationFlowController:
    return container.get(VerificationFlowController)


def get_client_ip(request: Request) -> Optional[str]:
    # Set by RequestTrackingMiddleware; fall back to the socket peer
    return getattr(request.state, "client_ip", None) or (
        request.client.host if request.client else None
    )


async def registration_rate_limit(
    request: Request,
    container: Container = Depends(get_container)
) -> None:
    """
    Throttle registration attempts per client IP.

    Raises:
        TooManyRequestsError: If the hourly limit is exceeded
    """
    settings = request.app.state.settings
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = get_client_ip(request) or "unknown"
    limiter = container.get(RateLimiter)
    key = RateLimiter.get_rate_limit_key(client_ip, "register")

    allowed, ttl = await limiter.check_rate_limit(
        key, settings.REGISTRATION_RATE_LIMIT_PER_HOUR, 3600
    )
    if not allowed:
        logger.warning("Registration rate limit exceeded", retry_after=ttl)
        raise TooManyRequestsError(details={"retry_after": ttl})


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    controller: VerificationFlowController = Depends(get_flow_controller)
) -> Account:
    """
    Get the account for the bearer access token.

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Authentication required")

    return await controller.get_current_account(credentials.credentials)


def require_roles(*required_roles: str):
    """
    Dependency factory for requiring specific roles.

    Args:
        *required_roles: Role values allowed through, e.g. "admin"

    Returns:
        Dependency function that checks the current account's role
    """
    allowed = {AccountRole(role) for role in required_roles}

    async def role_checker(
        current_account: Account = Depends(get_current_account)
    ) -> Account:
        if current_account.role not in allowed:
            logger.info(
                "Insufficient role",
                account_id=current_account.id,
                role=current_account.role.value
            )
            raise ForbiddenError("Insufficient permissions")
        return current_account

    return role_checker
