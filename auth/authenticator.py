"""
auth/authenticator.py -- Login and registration.

Login runs bcrypt whether or not the login exists. This prevents an attacker
from enumerating valid logins by measuring response time differences:
  - Unknown login:   bcrypt runs against _DUMMY_HASH (same cost as real check)
  - Wrong password:  bcrypt runs against the stored hash (same cost)

The two failures stay distinguishable in code (AuthFailure.USER_NOT_FOUND vs
AuthFailure.BAD_CREDENTIALS) for logging, but route handlers render both with
the same generic message.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.store import CredentialStore
from auth.tokens import _DUMMY_HASH, MAX_PASSWORD_BYTES, TokenCodec, hash_password, verify_password
from core.errors import AuthError, AuthFailure, DuplicateLoginError, ValidationError

logger = logging.getLogger("filmlibrary.auth")


class Authenticator:
    def __init__(self, store: CredentialStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    def login(self, login: str, password: str) -> str:
        """Check credentials and return a freshly issued session token.

        The token embeds the stored hash, not the plaintext, as an identity tag.

        Raises AuthError(USER_NOT_FOUND) or AuthError(BAD_CREDENTIALS).
        """
        user = self._store.get_by_login(login)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt
            verify_password(password, _DUMMY_HASH)
            logger.info("Login failed: unknown login")
            raise AuthError(AuthFailure.USER_NOT_FOUND)
        if not verify_password(password, user.hashed_password):
            logger.info("Login failed: bad credentials for %s", user.login)
            raise AuthError(AuthFailure.BAD_CREDENTIALS)
        return self._codec.issue(user.login, user.hashed_password, user.role)

    def register(self, login: str, password: str, role: Role = Role.REGULAR) -> User:
        """Hash the password with a fresh salt and persist the new user.

        No uniqueness pre-check: the store's unique index decides, and its
        IntegrityError becomes DuplicateLoginError.
        """
        if not login or not login.strip():
            raise ValidationError("login must not be empty.")
        if not password:
            raise ValidationError("password must not be empty.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes.")

        user = User(login=login, hashed_password=hash_password(password), role=Role(role))
        try:
            user.id = self._store.create_user(user)
        except IntegrityError as exc:
            raise DuplicateLoginError() from exc
        logger.info("Registered user %s (role=%s)", user.login, user.role.name.lower())
        return user
