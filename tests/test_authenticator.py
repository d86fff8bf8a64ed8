"""
tests/test_authenticator.py -- Unit tests for login and registration.

Covers:
  - register() stores a bcrypt hash, never the plaintext
  - login() issues a token whose claims carry login, stored hash and role
  - unknown login and wrong password fail with distinct AuthFailure values
  - duplicate logins are DuplicateLoginError (a ValidationError)
  - blank and over-long inputs are rejected before hashing
"""

from __future__ import annotations

import pytest

from auth.authenticator import Authenticator
from auth.models import Role
from auth.store import CredentialStore
from auth.tokens import TokenCodec
from core.errors import AuthError, AuthFailure, DuplicateLoginError, ValidationError


@pytest.fixture
def authenticator(credential_store: CredentialStore, codec: TokenCodec) -> Authenticator:
    return Authenticator(credential_store, codec)


class TestRegister:
    def test_stores_hash_not_plaintext(self, authenticator, credential_store) -> None:
        user = authenticator.register("alice", "wonderland")
        assert user.id is not None
        stored = credential_store.get_by_login("alice")
        assert stored is not None
        assert stored.hashed_password != "wonderland"
        assert stored.hashed_password.startswith("$2")
        assert stored.role is Role.REGULAR

    def test_admin_role_persisted(self, authenticator, credential_store) -> None:
        authenticator.register("root", "toor", Role.ADMIN)
        assert credential_store.get_by_login("root").role is Role.ADMIN

    def test_duplicate_login_rejected(self, authenticator) -> None:
        authenticator.register("alice", "first")
        with pytest.raises(DuplicateLoginError):
            authenticator.register("alice", "second")

    def test_duplicate_login_is_a_validation_error(self, authenticator) -> None:
        authenticator.register("alice", "first")
        with pytest.raises(ValidationError) as exc_info:
            authenticator.register("alice", "second", Role.ADMIN)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("login, password", [("", "pw"), ("   ", "pw"), ("alice", "")])
    def test_blank_fields_rejected(self, authenticator, login: str, password: str) -> None:
        with pytest.raises(ValidationError):
            authenticator.register(login, password)

    def test_password_over_72_bytes_rejected(self, authenticator) -> None:
        with pytest.raises(ValidationError):
            authenticator.register("alice", "x" * 73)

    def test_password_of_72_bytes_accepted(self, authenticator) -> None:
        authenticator.register("alice", "x" * 72)
        authenticator.login("alice", "x" * 72)


class TestLogin:
    def test_token_claims(self, authenticator, credential_store, codec) -> None:
        authenticator.register("a", "p", Role.ADMIN)
        token = authenticator.login("a", "p")
        result = codec.verify(token)
        assert result.ok
        assert result.claims.login == "a"
        assert result.claims.role is Role.ADMIN
        assert result.claims.password_hash == credential_store.get_by_login("a").hashed_password

    def test_wrong_password(self, authenticator) -> None:
        authenticator.register("alice", "right")
        with pytest.raises(AuthError) as exc_info:
            authenticator.login("alice", "wrong")
        assert exc_info.value.failure is AuthFailure.BAD_CREDENTIALS
        assert exc_info.value.status_code == 401

    def test_unknown_login(self, authenticator) -> None:
        with pytest.raises(AuthError) as exc_info:
            authenticator.login("ghost", "anything")
        assert exc_info.value.failure is AuthFailure.USER_NOT_FOUND

    def test_login_is_case_sensitive(self, authenticator) -> None:
        authenticator.register("Alice", "pw")
        with pytest.raises(AuthError):
            authenticator.login("alice", "pw")

    def test_each_login_issues_a_valid_token(self, authenticator, codec) -> None:
        authenticator.register("alice", "pw")
        first = authenticator.login("alice", "pw")
        second = authenticator.login("alice", "pw")
        assert codec.verify(first).ok
        assert codec.verify(second).ok
