"""
Unit tests for password hashing, password policy, token helpers and rate limiting.
"""
from datetime import date

import pytest

from mentwel_auth.core.security import (
    PasswordHasher,
    RateLimiter,
    calculate_age,
    generate_phone_verification_code,
    generate_verification_token,
    hash_token,
    validate_password_strength,
)


pytestmark = pytest.mark.unit


class TestPasswordHasher:
    """Test cases for PasswordHasher."""

    @pytest.fixture
    def hasher(self):
        return PasswordHasher(rounds=4)

    def test_hash_is_salted_and_verifiable(self, hasher):
        first = hasher.hash("Str0ngPassw0rd")
        second = hasher.hash("Str0ngPassw0rd")

        assert first != second
        assert first.startswith("$2b$04$")
        assert hasher.verify("Str0ngPassw0rd", first)
        assert not hasher.verify("Wr0ngPassw0rd", first)

    @pytest.mark.asyncio
    async def test_async_helpers_run_off_the_event_loop(self, hasher):
        hashed = await hasher.hash_async("Str0ngPassw0rd")

        assert await hasher.verify_async("Str0ngPassw0rd", hashed)
        assert not await hasher.verify_async("nope", hashed)
        await hasher.dummy_verify_async()


class TestPasswordPolicy:

    def test_strong_password_passes(self, test_settings):
        is_valid, errors = validate_password_strength("Str0ngPassw0rd", test_settings)

        assert is_valid
        assert errors == []

    @pytest.mark.parametrize(
        "password,expected_fragment",
        [
            ("Sh0rt", "at least 8 characters"),
            ("alllowercase1", "uppercase"),
            ("ALLUPPERCASE1", "lowercase"),
            ("NoDigitsHere", "number"),
        ],
    )
    def test_weak_passwords_are_rejected(self, test_settings, password, expected_fragment):
        is_valid, errors = validate_password_strength(password, test_settings)

        assert not is_valid
        assert any(expected_fragment in e for e in errors)

    def test_special_character_rule_is_opt_in(self, test_settings):
        strict = test_settings.model_copy(update={"PASSWORD_REQUIRE_SPECIAL": True})

        assert validate_password_strength("Str0ngPassw0rd", test_settings)[0]
        assert not validate_password_strength("Str0ngPassw0rd", strict)[0]
        assert validate_password_strength("Str0ngPassw0rd!", strict)[0]


class TestTokenHelpers:

    def test_verification_tokens_are_unique_uuids(self):
        tokens = {generate_verification_token() for _ in range(50)}

        assert len(tokens) == 50
        assert all(len(t) == 36 for t in tokens)

    def test_phone_code_is_six_digits(self):
        for _ in range(50):
            code = generate_phone_verification_code()
            assert len(code) == 6
            assert code.isdigit()

    def test_hash_token_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert hash_token("abc") != hash_token("abd")
        assert len(hash_token("abc")) == 64


class TestCalculateAge:

    def test_birthday_not_yet_reached(self):
        assert calculate_age(date(2000, 6, 15), today=date(2018, 6, 14)) == 17

    def test_birthday_reached(self):
        assert calculate_age(date(2000, 6, 15), today=date(2018, 6, 15)) == 18

    def test_recent_date_of_birth_is_underage(self):
        assert calculate_age(date(2010, 1, 1), today=date(2026, 10, 19)) == 16


class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_limit_is_enforced_per_key(self, redis_client):
        limiter = RateLimiter(redis_client)
        key = RateLimiter.get_rate_limit_key("10.0.0.1", "register")

        results = [await limiter.check_rate_limit(key, 3, 3600) for _ in range(4)]

        assert [allowed for allowed, _ in results] == [True, True, True, False]
        assert 0 < results[-1][1] <= 3600

        other_key = RateLimiter.get_rate_limit_key("10.0.0.2", "register")
        allowed, _ = await limiter.check_rate_limit(other_key, 3, 3600)
        assert allowed
