from datetime import date, datetime, timezone
from typing import Optional
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext
import re
import uuid
import secrets
import hashlib
import structlog

from .config import Settings

logger = structlog.get_logger()


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class PasswordHasher:
    """Salted bcrypt hashing with the CPU-bound work kept off the event loop."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        return self._context.verify(plain_password, hashed_password)

    async def hash_async(self, password: str) -> str:
        """Generate password hash in the thread pool."""
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash in the thread pool."""
        return await run_in_threadpool(self.verify, plain_password, hashed_password)

    async def dummy_verify_async(self) -> None:
        """Spend the same time as a real verification when no account matched."""
        await run_in_threadpool(self._context.dummy_verify)


def validate_password_strength(password: str, settings: Settings) -> tuple[bool, list[str]]:
    """Validate password meets the configured complexity policy"""
    errors = []

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")

    if settings.PASSWORD_REQUIRE_UPPERCASE and not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")

    if settings.PASSWORD_REQUIRE_LOWERCASE and not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")

    if settings.PASSWORD_REQUIRE_NUMBERS and not re.search(r"\d", password):
        errors.append("Password must contain at least one number")

    if settings.PASSWORD_REQUIRE_SPECIAL and not re.search(r"[!@#$%^&*(),.?\":{}|<>]", password):
        errors.append("Password must contain at least one special character")

    return len(errors) == 0, errors


def generate_verification_token() -> str:
    """Random single-use token for email verification and password reset links."""
    return str(uuid.uuid4())


def generate_phone_verification_code() -> str:
    """Six digit code for phone verification."""
    return str(100000 + secrets.randbelow(900000))


def hash_token(token: str) -> str:
    """Digest a single-use token for storage and lookup."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """Whole years between date_of_birth and today."""
    today = today or utcnow().date()
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)


class RateLimiter:
    """Fixed-window rate limiting on top of Redis counters"""

    def __init__(self, redis_client):
        self.redis = redis_client

    async def check_rate_limit(
        self,
        key: str,
        limit: int,
        window: int
    ) -> tuple[bool, int]:
        """Check if rate limit is exceeded"""
        current = await self.redis.incr(key)

        if current == 1:
            await self.redis.expire(key, window)

        ttl = await self.redis.ttl(key)

        if current > limit:
            return False, ttl

        return True, ttl

    @staticmethod
    def get_rate_limit_key(identifier: str, endpoint: str) -> str:
        """Generate rate limit key"""
        return f"rate_limit:{identifier}:{endpoint}"
