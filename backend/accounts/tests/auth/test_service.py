"""Tests for CredentialService."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from accounts.auth.errors import (
    CorruptPasswordHash,
    DuplicateEmail,
    DuplicateUsername,
    EmptyField,
    InvalidCredentials,
    InvalidFormat,
    StoreUnavailable,
    TooLong,
    TooShort,
    UniqueConstraintViolation,
)
from accounts.auth.models import Account, NewAccount
from accounts.auth.password import SimpleHasher
from accounts.auth.service import CredentialService
from accounts.dal.user_store import UserStore


def _mock_store() -> AsyncMock:
    store = AsyncMock(spec=UserStore)
    store.exists_by_username.return_value = False
    store.exists_by_email.return_value = False
    return store


class TestRegister:
    async def test_registers_account_with_assigned_id(self, credential_service):
        account = await credential_service.register("alice", "alice@example.com", "secret1")

        assert account.id > 0
        assert account.username == "alice"
        assert account.email == "alice@example.com"
        assert account.enabled is True
        assert account.description is None
        assert account.password_hash != "secret1"
        assert account.created_at.tzinfo is not None

    async def test_trims_username_and_email_but_not_password(self, credential_service):
        account = await credential_service.register("  bob  ", " bob@x.io ", " pass word ")

        assert account.username == "bob"
        assert account.email == "bob@x.io"
        assert await credential_service.verify_password(" pass word ", account.password_hash) is True
        assert await credential_service.verify_password("pass word", account.password_hash) is False

    async def test_keeps_description(self, credential_service):
        account = await credential_service.register("carol", "carol@example.com", "secret1", "Hello there")
        assert account.description == "Hello there"

    async def test_empty_description_stays_distinct_from_none(self, credential_service):
        account = await credential_service.register("dave", "dave@example.com", "secret1", "")
        assert account.description == ""

    async def test_ids_are_unique_and_increasing(self, credential_service):
        first = await credential_service.register("alice", "a@example.com", "secret1")
        second = await credential_service.register("bobby", "b@example.com", "secret1")
        assert second.id > first.id

    async def test_rejects_duplicate_username(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")

        with pytest.raises(DuplicateUsername, match="Username already exists"):
            await credential_service.register("alice", "other@example.com", "secret2")

    async def test_rejects_duplicate_email(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")

        with pytest.raises(DuplicateEmail, match="Email already exists"):
            await credential_service.register("bobby", "a@example.com", "secret2")

    async def test_username_duplicate_reported_before_email(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")

        with pytest.raises(DuplicateUsername):
            await credential_service.register("alice", "a@example.com", "secret1")

    async def test_duplicate_check_uses_trimmed_username(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")

        with pytest.raises(DuplicateUsername):
            await credential_service.register(" alice ", "b@example.com", "secret1")

    async def test_usernames_are_case_sensitive(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")
        account = await credential_service.register("Alice", "b@example.com", "secret1")
        assert account.username == "Alice"

    @pytest.mark.parametrize(
        ("username", "email", "password", "description", "error", "message"),
        [
            ("   ", "a@b.c", "secret1", None, EmptyField, "Username cannot be empty"),
            ("ab", "a@b.c", "secret1", None, TooShort, "Username must be at least 3 characters"),
            ("a" * 101, "a@b.c", "secret1", None, TooLong, "Username must not exceed 100 characters"),
            ("alice", "", "secret1", None, EmptyField, "Email cannot be empty"),
            ("alice", "not-an-email", "secret1", None, InvalidFormat, "Invalid email format"),
            ("alice", "a@b.c", "", None, EmptyField, "Password cannot be empty"),
            ("alice", "a@b.c", "12345", None, TooShort, "Password must be at least 6 characters"),
            ("alice", "a@b.c", "x" * 256, None, TooLong, "Password must not exceed 255 characters"),
            ("alice", "a@b.c", "secret1", "d" * 501, TooLong, "Description must not exceed 500 characters"),
        ],
    )
    async def test_rejects_invalid_input(self, credential_service, username, email, password, description, error, message):
        with pytest.raises(error, match=message):
            await credential_service.register(username, email, password, description)

    async def test_invalid_input_does_not_touch_store(self):
        store = _mock_store()
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(TooShort):
            await service.register("ab", "a@b.c", "secret1")

        store.exists_by_username.assert_not_called()
        store.insert.assert_not_called()

    async def test_boundary_lengths_accepted(self, credential_service):
        account = await credential_service.register("abc", "a@b", "x" * 6, "d" * 500)
        assert account.username == "abc"

        account = await credential_service.register("u" * 100, "e" * 251 + "@b.c", "x" * 255)
        assert len(account.username) == 100

    async def test_failed_registration_leaves_store_unchanged(self, credential_service, user_store):
        with pytest.raises(InvalidFormat):
            await credential_service.register("alice", "broken", "secret1")
        assert await user_store.exists_by_username("alice") is False

    async def test_rejects_unencodable_username(self, credential_service, user_store):
        with pytest.raises(InvalidFormat, match="Username contains invalid characters"):
            await credential_service.register("al\ud800ice", "a@example.com", "secret1")
        assert await user_store.exists_by_email("a@example.com") is False

    async def test_race_on_username_maps_to_duplicate_username(self):
        store = _mock_store()
        store.insert.side_effect = UniqueConstraintViolation("username")
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(DuplicateUsername):
            await service.register("alice", "a@example.com", "secret1")

    async def test_race_on_email_maps_to_duplicate_email(self):
        store = _mock_store()
        store.insert.side_effect = UniqueConstraintViolation("email")
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(DuplicateEmail):
            await service.register("alice", "a@example.com", "secret1")

    async def test_store_failure_propagates(self):
        store = _mock_store()
        store.exists_by_username.side_effect = StoreUnavailable("User store failure: disk I/O error")
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(StoreUnavailable):
            await service.register("alice", "a@example.com", "secret1")

    async def test_insert_receives_hashed_password(self):
        store = _mock_store()
        store.insert.side_effect = lambda new: Account(id=7, **new.model_dump())
        hasher = SimpleHasher()
        service = CredentialService(store, password_hasher=hasher)

        account = await service.register("alice", "a@example.com", "secret1")

        inserted: NewAccount = store.insert.call_args.args[0]
        assert inserted.password_hash == await hasher.hash("secret1")
        assert inserted.enabled is True
        assert account.id == 7

    async def test_logs_registration_without_password(self, credential_service, caplog):
        with caplog.at_level(logging.INFO):
            await credential_service.register("alice", "a@example.com", "supersecret")

        assert "account registered" in caplog.text
        assert "supersecret" not in caplog.text


class TestFindByUsername:
    async def test_unencodable_returns_none_without_store_call(self):
        store = _mock_store()
        service = CredentialService(store, password_hasher=SimpleHasher())

        assert await service.find_by_username("al\ud800ice") is None
        store.find_by_username.assert_not_called()

    async def test_finds_registered_account(self, credential_service):
        created = await credential_service.register("alice", "a@example.com", "secret1")
        found = await credential_service.find_by_username("alice")
        assert found == created

    async def test_trims_lookup(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")
        found = await credential_service.find_by_username("  alice ")
        assert found is not None
        assert found.username == "alice"

    async def test_unknown_returns_none(self, credential_service):
        assert await credential_service.find_by_username("nobody") is None

    @pytest.mark.parametrize("username", ["", "   ", None])
    async def test_blank_returns_none_without_store_call(self, username):
        store = _mock_store()
        service = CredentialService(store, password_hasher=SimpleHasher())

        assert await service.find_by_username(username) is None
        store.find_by_username.assert_not_called()


class TestVerifyPassword:
    async def test_unencodable_plaintext_never_matches(self, credential_service):
        stored = await SimpleHasher().hash("secret1")
        assert await credential_service.verify_password("secret1\ud800", stored) is False

    async def test_matching_password(self, credential_service):
        stored = await SimpleHasher().hash("secret1")
        assert await credential_service.verify_password("secret1", stored) is True

    async def test_mismatching_password(self, credential_service):
        stored = await SimpleHasher().hash("secret1")
        assert await credential_service.verify_password("secret2", stored) is False

    async def test_malformed_hash_raises(self, credential_service):
        with pytest.raises(CorruptPasswordHash):
            await credential_service.verify_password("secret1", "garbage")


class TestLogin:
    async def test_returns_account_for_valid_credentials(self, credential_service):
        created = await credential_service.register("alice", "a@example.com", "secret1")
        account = await credential_service.login("alice", "secret1")
        assert account.id == created.id

    async def test_trims_username(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")
        account = await credential_service.login(" alice ", "secret1")
        assert account.username == "alice"

    async def test_wrong_password(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")
        with pytest.raises(InvalidCredentials, match="Invalid username or password"):
            await credential_service.login("alice", "wrongpass")

    async def test_unknown_user_gets_same_error(self, credential_service):
        with pytest.raises(InvalidCredentials, match="Invalid username or password"):
            await credential_service.login("ghost", "secret1")

    async def test_password_is_not_trimmed(self, credential_service):
        await credential_service.register("alice", "a@example.com", "secret1")
        with pytest.raises(InvalidCredentials):
            await credential_service.login("alice", " secret1")

    async def test_disabled_account_rejected(self):
        hasher = SimpleHasher()
        store = _mock_store()
        store.find_by_username.return_value = Account(
            id=1,
            username="alice",
            email="a@example.com",
            password_hash=await hasher.hash("secret1"),
            enabled=False,
            created_at=datetime.now(UTC),
        )
        service = CredentialService(store, password_hasher=hasher)

        with pytest.raises(InvalidCredentials, match="Invalid username or password"):
            await service.login("alice", "secret1")

    @pytest.mark.parametrize("username", ["", "   ", None])
    async def test_blank_username_required(self, credential_service, username):
        with pytest.raises(EmptyField, match="Username is required"):
            await credential_service.login(username, "secret1")

    @pytest.mark.parametrize("password", ["", None])
    async def test_empty_password_required(self, credential_service, password):
        with pytest.raises(EmptyField, match="Password is required"):
            await credential_service.login("alice", password)

    async def test_corrupt_stored_hash_is_not_reported_as_bad_credentials(self):
        store = _mock_store()
        store.find_by_username.return_value = Account(
            id=1,
            username="alice",
            email="a@example.com",
            password_hash="not-a-hash",
            created_at=datetime.now(UTC),
        )
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(CorruptPasswordHash):
            await service.login("alice", "secret1")

    @pytest.mark.parametrize(
        ("username", "password", "field"),
        [("al\ud800ice", "secret1", "username"), ("alice", "secret\udfff", "password")],
    )
    async def test_unencodable_input_rejected_before_lookup(self, username, password, field):
        store = _mock_store()
        service = CredentialService(store, password_hasher=SimpleHasher())

        with pytest.raises(InvalidFormat) as exc_info:
            await service.login(username, password)

        assert exc_info.value.field == field
        store.find_by_username.assert_not_called()

    async def test_unknown_user_still_checks_a_hash(self):
        store = _mock_store()
        store.find_by_username.return_value = None
        hasher = SimpleHasher()
        service = CredentialService(store, password_hasher=hasher)

        with patch.object(hasher, "verify", wraps=hasher.verify) as verify:
            with pytest.raises(InvalidCredentials):
                await service.login("ghost", "secret1")
            with pytest.raises(InvalidCredentials):
                await service.login("ghost", "secret2")

        assert verify.call_count == 2
        first_hash = verify.call_args_list[0].args[1]
        assert first_hash.startswith("simple$")
        assert verify.call_args_list[1].args[1] == first_hash
