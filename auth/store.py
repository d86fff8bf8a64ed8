"""
auth/store.py -- SQLAlchemy Core persistence layer for credentials.

Pattern: Repository + Data Mapper (same as catalog/store.py).
CredentialStore is the repository; _row_to_user is the mapper.
Route and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(login) is enforced by the database, not by a pre-check in code.
  Two concurrent registrations for the same login both pass any read-then-write
  check; only the unique index decides which one wins. create_user() lets the
  resulting IntegrityError propagate so the Authenticator can report it as a
  duplicate login.

DB URL: Settings.auth_db_url (SQLite file next to this package by default).

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, select, text
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.db import make_engine, store_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("login", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash, never plaintext
    Column("role", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for User records. Consulted only by the Authenticator.

    Usage:
        store = CredentialStore("sqlite:///:memory:")
        store.create_user(User(login="admin", hashed_password=hash_password("secret"), role=Role.ADMIN))
        user = store.get_by_login("admin")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        with store_errors("credential schema setup"):
            _metadata.create_all(self.engine)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the login already exists.
        """
        with store_errors("user insert"), self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    login=user.login,
                    password=user.hashed_password,
                    role=int(user.role),
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_login(self, login: str) -> User | None:
        """Look up a user by exact login (case-sensitive). Returns None if not found."""
        with store_errors("user lookup"), self.engine.connect() as conn:
            row = conn.execute(select(_users).where(_users.c.login == login)).fetchone()
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with store_errors("credential ping"), self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        login=row.login,
        hashed_password=row.password,
        role=Role(row.role),
        created_at=row.created_at,
    )
