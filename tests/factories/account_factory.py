"""
Account factories for testing.
Uses Factory Boy to generate realistic test data with Faker.
"""
import uuid
from datetime import date

import factory
from factory import Faker, LazyAttribute, LazyFunction
from faker import Faker as FakerInstance

from mentwel_auth.core.security import utcnow
from mentwel_auth.models.account import Account, AccountRole, AccountStatus

fake = FakerInstance()

VALID_PASSWORD = "Str0ngPassw0rd"


class AccountFactory(factory.Factory):
    """Factory for detached Account instances (not persisted)."""

    class Meta:
        model = Account

    id = LazyFunction(lambda: uuid.uuid4().hex)
    email = LazyFunction(lambda: fake.unique.email().lower())
    phone_number = None
    hashed_password = "$2b$04$invalidhashforfactoryuseonly000000000000000000000000000"
    first_name = Faker("first_name")
    last_name = Faker("last_name")
    role = AccountRole.USER
    status = AccountStatus.ACTIVE
    is_email_verified = True
    is_phone_verified = False
    verification_token = None
    phone_verification_code = None
    reset_password_token = None
    reset_password_expires = None
    date_of_birth = LazyFunction(lambda: fake.date_of_birth(minimum_age=18, maximum_age=80))
    gender = None
    country = "Nigeria"
    accepted_terms_at = LazyFunction(utcnow)
    created_at = LazyFunction(utcnow)
    updated_at = LazyAttribute(lambda obj: obj.created_at)

    class Params:
        unverified = factory.Trait(
            status=AccountStatus.PENDING_VERIFICATION,
            is_email_verified=False,
        )
        suspended = factory.Trait(status=AccountStatus.SUSPENDED)


class RegistrationPayloadFactory(factory.DictFactory):
    """Factory for camelCase registration request bodies."""

    email = LazyFunction(lambda: fake.unique.email().lower())
    password = VALID_PASSWORD
    firstName = Faker("first_name")
    lastName = Faker("last_name")
    dateOfBirth = LazyFunction(
        lambda: fake.date_of_birth(minimum_age=18, maximum_age=80).isoformat()
    )
    acceptTerms = True
    role = "user"


def registration_kwargs(**overrides) -> dict:
    """Keyword arguments for VerificationFlowController.register."""
    data = {
        "email": fake.unique.email().lower(),
        "password": VALID_PASSWORD,
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "date_of_birth": date(1990, 1, 1),
        "accept_terms": True,
        "role": "user",
    }
    data.update(overrides)
    return data
