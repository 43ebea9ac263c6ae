"""Test data factories for auth service testing."""

from .account_factory import (
    VALID_PASSWORD,
    AccountFactory,
    RegistrationPayloadFactory,
    registration_kwargs,
)

__all__ = [
    "VALID_PASSWORD",
    "AccountFactory",
    "RegistrationPayloadFactory",
    "registration_kwargs",
]
