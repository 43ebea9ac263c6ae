"""
Database models for the auth service.
"""
from .base import Base, BaseModel, TimestampMixin
from .account import Account, AccountRole, AccountStatus, Gender

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "Account",
    "AccountRole",
    "AccountStatus",
    "Gender",
]
