"""
Account model: identity, hashed secret and verification/reset state.
Single-use tokens are stored as SHA-256 digests, never as raw values.
"""
import enum
import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Enum, String

from .base import BaseModel


class AccountRole(str, enum.Enum):
    USER = "user"
    THERAPIST = "therapist"
    ADMIN = "admin"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


def _new_account_id() -> str:
    return uuid.uuid4().hex


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Account(BaseModel):
    """Registered platform account (client, therapist or admin)."""

    __tablename__ = "account"

    id = Column(String(32), primary_key=True, default=_new_account_id)

    # Identity - at least one of email / phone_number is present
    email = Column(String(255), unique=True, nullable=True, index=True)
    phone_number = Column(String(32), unique=True, nullable=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    role = Column(
        Enum(AccountRole, name="account_role", values_callable=_enum_values),
        nullable=False,
        default=AccountRole.USER
    )
    status = Column(
        Enum(AccountStatus, name="account_status", values_callable=_enum_values),
        nullable=False,
        default=AccountStatus.PENDING_VERIFICATION
    )

    is_email_verified = Column(Boolean, default=False, nullable=False)
    is_phone_verified = Column(Boolean, default=False, nullable=False)

    # Single-use tokens (SHA-256 digests)
    verification_token = Column(String(64), nullable=True, index=True)
    phone_verification_code = Column(String(64), nullable=True)
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)

    # Demographics
    date_of_birth = Column(Date, nullable=True)
    gender = Column(
        Enum(Gender, name="account_gender", values_callable=_enum_values),
        nullable=True
    )
    country = Column(String(100), nullable=True, default="Nigeria")
    accepted_terms_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def requires_email_verification(self) -> bool:
        return bool(self.email) and not self.is_email_verified
