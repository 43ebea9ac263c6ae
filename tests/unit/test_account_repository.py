"""
Tests for AccountRepository against a file-backed SQLite database.
"""
import asyncio
from datetime import timedelta

import pytest

from mentwel_auth.core.exceptions import ConflictError
from mentwel_auth.core.security import hash_token, utcnow
from mentwel_auth.models.account import AccountRole, AccountStatus

pytestmark = pytest.mark.unit


def _fields(**overrides):
    fields = {
        "email": "client@example.com",
        "hashed_password": "hashed",
        "first_name": "Ada",
        "role": AccountRole.USER,
        "status": AccountStatus.PENDING_VERIFICATION,
    }
    fields.update(overrides)
    return fields


class TestAccountRepository:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_defaults(self, account_repository):
        account = await account_repository.create(**_fields(email="Client@Example.com"))

        assert len(account.id) == 32
        assert account.email == "client@example.com"
        assert account.is_email_verified is False
        assert account.created_at is not None

    @pytest.mark.asyncio
    async def test_find_by_identity(self, account_repository):
        created = await account_repository.create(**_fields(phone_number="+2348000000001"))

        by_email = await account_repository.find_by_identity(email="CLIENT@example.com")
        by_phone = await account_repository.find_by_identity(phone="+2348000000001")

        assert by_email.id == created.id
        assert by_phone.id == created.id
        assert await account_repository.find_by_identity(email="other@example.com") is None
        assert await account_repository.find_by_identity() is None

    @pytest.mark.asyncio
    async def test_get_by_id(self, account_repository):
        created = await account_repository.create(**_fields())

        assert (await account_repository.get_by_id(created.id)).email == "client@example.com"
        assert await account_repository.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, account_repository):
        await account_repository.create(**_fields())

        with pytest.raises(ConflictError):
            await account_repository.create(**_fields(email="CLIENT@example.com"))

    @pytest.mark.asyncio
    async def test_duplicate_phone_conflicts(self, account_repository):
        await account_repository.create(**_fields(email=None, phone_number="+2348000000001"))

        with pytest.raises(ConflictError):
            await account_repository.create(**_fields(email=None, phone_number="+2348000000001"))

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_creates_exactly_one_wins(self, account_repository):
        results = await asyncio.gather(
            account_repository.create(**_fields()),
            account_repository.create(**_fields()),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 1

    @pytest.mark.asyncio
    async def test_save_persists_mutations(self, account_repository):
        account = await account_repository.create(**_fields(verification_token=hash_token("tok")))

        found = await account_repository.find_by_verification_token(hash_token("tok"))
        assert found.id == account.id

        found.verification_token = None
        found.is_email_verified = True
        await account_repository.save(found)

        reloaded = await account_repository.get_by_id(account.id)
        assert reloaded.is_email_verified is True
        assert await account_repository.find_by_verification_token(hash_token("tok")) is None

    @pytest.mark.asyncio
    async def test_find_by_reset_token_honours_expiry(self, account_repository):
        live = await account_repository.create(**_fields(
            email="live@example.com",
            reset_password_token=hash_token("live"),
            reset_password_expires=utcnow() + timedelta(minutes=10),
        ))
        await account_repository.create(**_fields(
            email="stale@example.com",
            reset_password_token=hash_token("stale"),
            reset_password_expires=utcnow() - timedelta(minutes=1),
        ))

        assert (await account_repository.find_by_reset_token(hash_token("live"))).id == live.id
        assert await account_repository.find_by_reset_token(hash_token("stale")) is None
        assert await account_repository.find_by_reset_token(hash_token("stale"), not_expired=False) is not None
        assert await account_repository.find_by_reset_token(
            hash_token("live"), now=utcnow() + timedelta(minutes=11)
        ) is None
