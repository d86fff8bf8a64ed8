"""
core/db.py -- Engine construction and error translation shared by both stores.

auth/store.py and catalog/store.py each own their schema and queries, but the
connection setup is identical: SQLite needs check_same_thread=False (FastAPI
runs sync handlers in a thread pool), WAL mode for concurrent readers, a busy
timeout so a locked database surfaces as an error instead of hanging, and
foreign key enforcement, which SQLite leaves off unless asked per connection.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import StoreError

# Seconds a SQLite connection waits on a locked database before failing.
_SQLITE_BUSY_TIMEOUT = 5


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement, and replace lower().

    Set per-connection because SQLite PRAGMAs and functions are not inherited
    by new connections from the pool.

    SQLite's built-in lower() only folds ASCII, so case-insensitive search
    (ilike/icontains compile to lower(x) LIKE lower(y)) would miss Cyrillic
    and other non-ASCII names. The Python replacement folds all of Unicode.
    """
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url with the per-dialect settings above."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = _SQLITE_BUSY_TIMEOUT
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise driver failures as StoreError, chaining the original.

    IntegrityError passes through untouched: callers that expect a unique
    constraint violation (duplicate login) need to see it as such.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        raise StoreError(f"Storage failure during {operation}.") from exc
