"""
catalog/models.py -- Domain dataclasses for the film catalog.

These are pure data containers with zero logic. Sorting, searching and
referential integrity live in catalog/store.py, catalog/query.py and
catalog/mutator.py.

Dates are kept as YYYYMMDD strings, exactly as clients send them. Comparing
two such strings as text gives chronological order, which is what the date
sort relies on.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SortKey(str, Enum):
    RATING = "rating"
    NAME = "name"
    DATE = "date"


class SearchTarget(str, Enum):
    FILM = "film"
    ACTOR = "actor"


@dataclass
class Film:
    """A film in the catalog.

    actor_ids is set by the caller on create/update and filled in by
    CatalogStore.get_film(); listings and search results leave it empty.

    id is None before the record is written to the database.
    """

    name: str
    description: str = ""
    date: str = ""  # YYYYMMDD
    rating: float = 0.0
    id: Optional[int] = None
    actor_ids: list[int] = field(default_factory=list)


@dataclass
class Actor:
    """An actor. film_ids follows the same convention as Film.actor_ids."""

    name: str
    surname: str = ""
    fathername: str = ""
    birthdate: str = ""  # YYYYMMDD
    sex: str = ""
    id: Optional[int] = None
    film_ids: list[int] = field(default_factory=list)


@dataclass
class FilmRef:
    """The {id, name} pair embedded in an actor listing."""

    id: int
    name: str


@dataclass
class ActorWithFilms:
    actor: Actor
    films: list[FilmRef] = field(default_factory=list)
