"""
Refresh token registry interface.
Tracks issued refresh tokens so they can be revoked before they expire.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class IRefreshTokenRegistry(Protocol):
    """Protocol for refresh token tracking."""

    async def record(self, token: str, account_id: str, expires_at: datetime) -> None:
        """
        Record an issued refresh token.

        Args:
            token: Raw refresh token
            account_id: Owning account ID
            expires_at: Absolute expiry of the token
        """
        ...

    async def is_live(self, token: str, account_id: str) -> bool:
        """
        Check whether a refresh token is recorded, unexpired and owned by the account.

        Args:
            token: Raw refresh token
            account_id: Account ID the token claims to belong to

        Returns:
            True if a matching live record exists
        """
        ...

    async def revoke(self, token: str) -> bool:
        """
        Delete one refresh token record. Revoking an unknown token is not an error.

        Returns:
            True if a record was deleted
        """
        ...

    async def revoke_all(self, account_id: str) -> int:
        """
        Delete every refresh token record for an account.

        Returns:
            Number of records deleted
        """
        ...
