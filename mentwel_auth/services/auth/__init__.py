"""
Authentication services: token issuing, refresh token tracking and the
verification flow controller.
"""
from .refresh_token_registry import RedisRefreshTokenRegistry
from .token_service import TokenIssuer, TokenPair, TokenPayload
from .verification_flow import AuthResult, RefreshResult, VerificationFlowController

__all__ = [
    "RedisRefreshTokenRegistry",
    "TokenIssuer",
    "TokenPair",
    "TokenPayload",
    "AuthResult",
    "RefreshResult",
    "VerificationFlowController",
]
