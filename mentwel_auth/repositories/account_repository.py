"""
Account repository implementation following the Repository pattern.
Each operation opens its own short-lived session from the injected factory.
"""

from datetime import datetime
from typing import Any, Optional
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select
import structlog

from ..core.exceptions import ConflictError
from ..core.security import utcnow
from ..interfaces.repository_interface import IAccountRepository
from ..models.account import Account

logger = structlog.get_logger()


class AccountRepository(IAccountRepository):
    """Repository for account data access operations."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_by_identity(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Optional[Account]:
        """
        Find an account by email or phone number.
        When both are given the email match wins.
        """
        conditions = []
        if email:
            conditions.append(func.lower(Account.email) == email.strip().lower())
        if phone:
            conditions.append(Account.phone_number == phone.strip())
        if not conditions:
            return None

        async with self.session_factory() as session:
            result = await session.execute(select(Account).where(or_(*conditions)))
            accounts = result.scalars().all()

        if not accounts:
            return None
        if email:
            for account in accounts:
                if account.email and account.email.lower() == email.strip().lower():
                    return account
        return accounts[0]

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        async with self.session_factory() as session:
            return await session.get(Account, account_id)

    async def create(self, **fields: Any) -> Account:
        """
        Insert a new account.

        The unique constraints on email and phone_number settle concurrent
        registrations: the losing insert raises IntegrityError, reported
        as ConflictError.
        """
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()

        account = Account(**fields)
        async with self.session_factory() as session:
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("Account creation conflict", error=str(e.orig))
                raise ConflictError("User already exists with this email or phone number")

        logger.info("Account created", account_id=account.id, role=account.role.value)
        return account

    async def find_by_verification_token(self, token_hash: str) -> Optional[Account]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Account).where(Account.verification_token == token_hash)
            )
            return result.scalars().first()

    async def find_by_reset_token(
        self,
        token_hash: str,
        not_expired: bool = True,
        now: Optional[datetime] = None
    ) -> Optional[Account]:
        query = select(Account).where(Account.reset_password_token == token_hash)
        if not_expired:
            query = query.where(Account.reset_password_expires > (now or utcnow()))

        async with self.session_factory() as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def save(self, account: Account) -> Account:
        """Persist mutations made to a detached account instance."""
        async with self.session_factory() as session:
            merged = await session.merge(account)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("Account update conflict", account_id=account.id, error=str(e.orig))
                raise ConflictError("User already exists with this email or phone number")
            return merged
