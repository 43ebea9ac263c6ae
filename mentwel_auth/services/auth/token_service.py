"""
Token issuer focused solely on JWT operations.
Mints signed access/refresh tokens bound to a session id and verifies them.
Pure computation: nothing here touches storage.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid
from jose import ExpiredSignatureError, JWTError, jwt
import structlog

from ...core.config import Settings
from ...core.exceptions import InvalidSignatureError, TokenExpiredError
from ...core.security import utcnow

logger = structlog.get_logger()

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    session_id: str
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True)
class TokenPayload:
    """Decoded and verified token claims."""
    account_id: str
    role: str
    session_id: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    jti: Optional[str] = None


class TokenIssuer:
    """Service responsible for JWT token operations."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def _encode(
        self,
        account_id: str,
        role: str,
        session_id: str,
        token_type: str,
        ttl: timedelta,
        jti: Optional[str] = None
    ) -> tuple[str, datetime]:
        issued_at = utcnow()
        expires_at = issued_at + ttl
        claims = {
            "sub": str(account_id),
            "role": role,
            "session_id": session_id,
            "type": token_type,
            "iat": issued_at,
            "exp": expires_at,
        }
        if jti:
            claims["jti"] = jti
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm), expires_at

    def issue_pair(self, account_id: str, role: str) -> TokenPair:
        """
        Mint an access/refresh pair sharing a fresh session id.

        Args:
            account_id: Account the tokens are issued to
            role: Role claim embedded in both tokens

        Returns:
            TokenPair with both tokens and their absolute expiries
        """
        session_id = uuid.uuid4().hex
        access_token, access_expires_at = self._encode(
            account_id, role, session_id, ACCESS_TOKEN_TYPE, self.access_ttl
        )
        refresh_token, refresh_expires_at = self._encode(
            account_id, role, session_id, REFRESH_TOKEN_TYPE, self.refresh_ttl,
            jti=uuid.uuid4().hex
        )

        logger.debug("Token pair issued", account_id=account_id, session_id=session_id)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            session_id=session_id,
            access_expires_at=access_expires_at,
            refresh_expires_at=refresh_expires_at,
        )

    def issue_access_only(self, account_id: str, role: str, session_id: str) -> tuple[str, datetime]:
        """Mint an access token for an existing session; returns (token, expires_at)."""
        return self._encode(account_id, role, session_id, ACCESS_TOKEN_TYPE, self.access_ttl)

    def verify(self, token: str, expected_type: Optional[str] = None) -> TokenPayload:
        """
        Verify signature and expiry and return the token claims.

        Raises:
            TokenExpiredError: The token is past its expiry
            InvalidSignatureError: Bad signature, malformed claims or wrong token type
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            logger.debug("Token decode failed", error=str(e))
            raise InvalidSignatureError()

        token_type = claims.get("type")
        if expected_type and token_type != expected_type:
            raise InvalidSignatureError()

        try:
            return TokenPayload(
                account_id=claims["sub"],
                role=claims["role"],
                session_id=claims["session_id"],
                token_type=token_type,
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                jti=claims.get("jti"),
            )
        except (KeyError, TypeError, ValueError):
            raise InvalidSignatureError()
