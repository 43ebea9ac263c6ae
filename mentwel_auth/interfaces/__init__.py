"""
Interface definitions for dependency abstractions.
These Protocol classes define contracts for services to enable dependency injection
and improve testability.
"""

from .messaging_interface import IMessageDispatcher
from .repository_interface import IAccountRepository
from .token_registry_interface import IRefreshTokenRegistry

__all__ = [
    "IAccountRepository",
    "IMessageDispatcher",
    "IRefreshTokenRegistry",
]
