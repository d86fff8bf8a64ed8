"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, zero logic beyond parsing). Mirrors
the approach in catalog/models.py -- dataclasses own domain shape; stores,
the token codec and routes do the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum


class Role(IntEnum):
    """Access tier. Serialized as an int in tokens, the DB and the API."""

    REGULAR = 0
    ADMIN = 1

    @classmethod
    def parse(cls, value: object) -> Role:
        """Decode a role from an untyped claim value.

        Only real ints (not bools, not strings) that name a known member are
        accepted. Raises ValueError otherwise.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"role must be an integer, got {type(value).__name__}")
        return cls(value)


@dataclass
class User:
    """A registered identity.

    hashed_password is the bcrypt hash; the plaintext is never stored. The
    same hash is embedded in issued tokens as an opaque identity tag.
    """

    login: str
    hashed_password: str
    role: Role = Role.REGULAR
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Identity facts carried by a verified session token."""

    login: str
    password_hash: str
    role: Role
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
