"""
catalog/store.py -- SQLAlchemy-backed persistence layer for films and actors.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in catalog/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. CatalogStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. The query
engine and mutator never touch SQL directly.

Referential integrity:
  film_actors rows reference both sides with ON DELETE CASCADE, and the
  delete methods also remove association rows explicitly inside the same
  transaction. Either mechanism alone leaves no dangling rows; doing both
  keeps the behaviour identical on databases where foreign keys are off.
  Writes that touch a record and its associations run in one transaction
  (engine.begin()), so a failure leaves neither half behind.

Security: all queries use bound parameters. No f-strings in SQL. Search
fragments are matched with autoescape, so % and _ are literal characters.

Usage:
    store = CatalogStore("sqlite:///:memory:")
    film_id = store.create_film(Film(name="Interstellar", rating=8.6))
    films = store.list_films(SortKey.RATING)
    store.close()
"""

from typing import Optional

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine

from catalog.models import Actor, ActorWithFilms, Film, FilmRef, SortKey
from core.db import make_engine, store_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_films = Table(
    "films",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("date", String(8), nullable=False, server_default=""),  # YYYYMMDD
    Column("rating", Float, nullable=False, server_default="0"),
)

_actors = Table(
    "actors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False),
    Column("surname", String(150), nullable=False, server_default=""),
    Column("fathername", String(150), nullable=False, server_default=""),
    Column("birthdate", String(8), nullable=False, server_default=""),  # YYYYMMDD
    Column("sex", String(16), nullable=False, server_default=""),
)

_film_actors = Table(
    "film_actors",
    metadata,
    Column("film_id", Integer, ForeignKey("films.id", ondelete="CASCADE"), primary_key=True),
    Column("actor_id", Integer, ForeignKey("actors.id", ondelete="CASCADE"), primary_key=True),
)

# Every ordering ends on id so rows with equal keys come back in a fixed order.
_ORDER_BY = {
    SortKey.RATING: (_films.c.rating.desc(), _films.c.id),
    SortKey.NAME: (_films.c.name, _films.c.id),
    SortKey.DATE: (_films.c.date, _films.c.id),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unique(ids: list[int]) -> list[int]:
    """Drop duplicate ids, keeping first-occurrence order."""
    return list(dict.fromkeys(ids))


def _missing_ids(conn: Connection, table: Table, ids: list[int]) -> list[int]:
    if not ids:
        return []
    found = set(conn.execute(select(table.c.id).where(table.c.id.in_(ids))).scalars())
    return [i for i in ids if i not in found]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        with store_errors("catalog schema setup"):
            metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Films -- reads
    # ------------------------------------------------------------------

    def get_film(self, film_id: int) -> Optional[Film]:
        """Fetch a single film by ID. Returns None if not found."""
        with store_errors("film lookup"), self.engine.connect() as conn:
            row = conn.execute(select(_films).where(_films.c.id == film_id)).fetchone()
            if row is None:
                return None
            actor_ids = list(
                conn.execute(
                    select(_film_actors.c.actor_id)
                    .where(_film_actors.c.film_id == film_id)
                    .order_by(_film_actors.c.actor_id)
                ).scalars()
            )
        film = _row_to_film(row)
        film.actor_ids = actor_ids
        return film

    def list_films(self, key: SortKey) -> list[Film]:
        """Return every film ordered by key (see _ORDER_BY)."""
        with store_errors("film listing"), self.engine.connect() as conn:
            rows = conn.execute(select(_films).order_by(*_ORDER_BY[key])).fetchall()
        return [_row_to_film(r) for r in rows]

    def search_films_by_name(self, fragment: str) -> list[Film]:
        """Films whose name contains fragment, case-insensitively. Rating order."""
        stmt = (
            select(_films)
            .where(_films.c.name.icontains(fragment, autoescape=True))
            .order_by(*_ORDER_BY[SortKey.RATING])
        )
        with store_errors("film search"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_film(r) for r in rows]

    def search_films_by_actor(self, fragment: str) -> list[Film]:
        """Films featuring an actor whose name or surname contains fragment.

        The IN-subquery yields each film once even when several of its actors
        match, without a DISTINCT over the whole row.
        """
        matching_films = (
            select(_film_actors.c.film_id)
            .join(_actors, _actors.c.id == _film_actors.c.actor_id)
            .where(
                or_(
                    _actors.c.name.icontains(fragment, autoescape=True),
                    _actors.c.surname.icontains(fragment, autoescape=True),
                )
            )
        )
        stmt = select(_films).where(_films.c.id.in_(matching_films)).order_by(*_ORDER_BY[SortKey.RATING])
        with store_errors("actor search"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_film(r) for r in rows]

    # ------------------------------------------------------------------
    # Films -- writes
    # ------------------------------------------------------------------

    def missing_actor_ids(self, actor_ids: list[int]) -> list[int]:
        """Return the subset of actor_ids with no actor row."""
        with store_errors("actor id check"), self.engine.connect() as conn:
            return _missing_ids(conn, _actors, _unique(actor_ids))

    def create_film(self, film: Film) -> int:
        """Insert a film and its actor links; return the assigned ID.

        Raises sqlalchemy.exc.IntegrityError if a linked actor disappeared
        between validation and insert (foreign key violation).
        """
        with store_errors("film insert"), self.engine.begin() as conn:
            result = conn.execute(
                _films.insert().values(
                    name=film.name,
                    description=film.description,
                    date=film.date,
                    rating=film.rating,
                )
            )
            film_id = result.inserted_primary_key[0]
            _link(conn, [(film_id, a) for a in _unique(film.actor_ids)])
        return film_id

    def update_film(self, film: Film) -> bool:
        """Replace every field and the actor links of film.id.

        Returns True if a row was updated, False if film.id was not found.
        """
        with store_errors("film update"), self.engine.begin() as conn:
            result = conn.execute(
                _films.update()
                .where(_films.c.id == film.id)
                .values(
                    name=film.name,
                    description=film.description,
                    date=film.date,
                    rating=film.rating,
                )
            )
            if result.rowcount == 0:
                return False
            conn.execute(_film_actors.delete().where(_film_actors.c.film_id == film.id))
            _link(conn, [(film.id, a) for a in _unique(film.actor_ids)])
        return True

    def delete_film(self, film_id: int) -> bool:
        """Delete a film and every association row pointing at it.

        Returns True if deleted, False if not found.
        """
        with store_errors("film delete"), self.engine.begin() as conn:
            conn.execute(_film_actors.delete().where(_film_actors.c.film_id == film_id))
            result = conn.execute(_films.delete().where(_films.c.id == film_id))
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Actors -- reads
    # ------------------------------------------------------------------

    def get_actor(self, actor_id: int) -> Optional[Actor]:
        """Fetch a single actor by ID. Returns None if not found."""
        with store_errors("actor lookup"), self.engine.connect() as conn:
            row = conn.execute(select(_actors).where(_actors.c.id == actor_id)).fetchone()
            if row is None:
                return None
            film_ids = list(
                conn.execute(
                    select(_film_actors.c.film_id)
                    .where(_film_actors.c.actor_id == actor_id)
                    .order_by(_film_actors.c.film_id)
                ).scalars()
            )
        actor = _row_to_actor(row)
        actor.film_ids = film_ids
        return actor

    def list_actors_with_films(self) -> list[ActorWithFilms]:
        """Return all actors ordered by id, each with its films ordered by id.

        Two queries total (actors, then every link joined to its film name)
        rather than one film query per actor.
        """
        links_stmt = (
            select(_film_actors.c.actor_id, _films.c.id, _films.c.name)
            .join(_films, _films.c.id == _film_actors.c.film_id)
            .order_by(_films.c.id)
        )
        with store_errors("actor listing"), self.engine.connect() as conn:
            actor_rows = conn.execute(select(_actors).order_by(_actors.c.id)).fetchall()
            link_rows = conn.execute(links_stmt).fetchall()

        films_by_actor: dict[int, list[FilmRef]] = {}
        for actor_id, film_id, film_name in link_rows:
            films_by_actor.setdefault(actor_id, []).append(FilmRef(id=film_id, name=film_name))

        return [ActorWithFilms(actor=_row_to_actor(r), films=films_by_actor.get(r.id, [])) for r in actor_rows]

    # ------------------------------------------------------------------
    # Actors -- writes
    # ------------------------------------------------------------------

    def missing_film_ids(self, film_ids: list[int]) -> list[int]:
        """Return the subset of film_ids with no film row."""
        with store_errors("film id check"), self.engine.connect() as conn:
            return _missing_ids(conn, _films, _unique(film_ids))

    def create_actor(self, actor: Actor) -> int:
        """Insert an actor and its film links; return the assigned ID."""
        with store_errors("actor insert"), self.engine.begin() as conn:
            result = conn.execute(
                _actors.insert().values(
                    name=actor.name,
                    surname=actor.surname,
                    fathername=actor.fathername,
                    birthdate=actor.birthdate,
                    sex=actor.sex,
                )
            )
            actor_id = result.inserted_primary_key[0]
            _link(conn, [(f, actor_id) for f in _unique(actor.film_ids)])
        return actor_id

    def update_actor(self, actor: Actor) -> bool:
        """Replace every field and the film links of actor.id.

        Returns True if a row was updated, False if actor.id was not found.
        """
        with store_errors("actor update"), self.engine.begin() as conn:
            result = conn.execute(
                _actors.update()
                .where(_actors.c.id == actor.id)
                .values(
                    name=actor.name,
                    surname=actor.surname,
                    fathername=actor.fathername,
                    birthdate=actor.birthdate,
                    sex=actor.sex,
                )
            )
            if result.rowcount == 0:
                return False
            conn.execute(_film_actors.delete().where(_film_actors.c.actor_id == actor.id))
            _link(conn, [(f, actor.id) for f in _unique(actor.film_ids)])
        return True

    def delete_actor(self, actor_id: int) -> bool:
        """Delete an actor and every association row pointing at it."""
        with store_errors("actor delete"), self.engine.begin() as conn:
            conn.execute(_film_actors.delete().where(_film_actors.c.actor_id == actor_id))
            result = conn.execute(_actors.delete().where(_actors.c.id == actor_id))
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with store_errors("catalog ping"), self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Association helper
# ---------------------------------------------------------------------------


def _link(conn: Connection, pairs: list[tuple[int, int]]) -> None:
    """Insert (film_id, actor_id) association rows. No-op for an empty list."""
    if pairs:
        conn.execute(_film_actors.insert(), [{"film_id": f, "actor_id": a} for f, a in pairs])


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_film(row) -> Film:
    return Film(
        id=row.id,
        name=row.name,
        description=row.description,
        date=row.date,
        rating=row.rating,
    )


def _row_to_actor(row) -> Actor:
    return Actor(
        id=row.id,
        name=row.name,
        surname=row.surname,
        fathername=row.fathername,
        birthdate=row.birthdate,
        sex=row.sex,
    )
