"""
Repository interfaces for dependency abstraction.
Defines the contract for credential store operations so the flow controller
can be tested without a database.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from ..models.account import Account


@runtime_checkable
class IAccountRepository(Protocol):
    """Protocol for account repository operations."""

    async def find_by_identity(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Optional[Account]:
        """
        Find an account by email or phone number.

        Args:
            email: Email address (matched case-insensitively)
            phone: Phone number

        Returns:
            Account instance or None if not found
        """
        ...

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """
        Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account instance or None if not found
        """
        ...

    async def create(self, **fields: Any) -> Account:
        """
        Create a new account.

        Args:
            **fields: Column values for the new account

        Returns:
            Created account instance

        Raises:
            ConflictError: If the email or phone number is already registered
        """
        ...

    async def find_by_verification_token(self, token_hash: str) -> Optional[Account]:
        """
        Find the account holding an email verification token.

        Args:
            token_hash: SHA-256 digest of the raw token

        Returns:
            Account instance or None if no account holds the token
        """
        ...

    async def find_by_reset_token(
        self,
        token_hash: str,
        not_expired: bool = True,
        now: Optional[datetime] = None
    ) -> Optional[Account]:
        """
        Find the account holding a password reset token.

        Args:
            token_hash: SHA-256 digest of the raw token
            not_expired: Only match tokens whose expiry is in the future
            now: Reference time for the expiry check (defaults to current UTC time)

        Returns:
            Account instance or None if no live token matches
        """
        ...

    async def save(self, account: Account) -> Account:
        """
        Persist mutations made to an account.

        Args:
            account: Account instance to persist

        Returns:
            The persisted account instance
        """
        ...
