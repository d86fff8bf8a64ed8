"""
API request and response models for the film library REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from auth.models import Role
from catalog.models import Actor, ActorWithFilms, Film, FilmRef, SearchTarget

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Empty, or eight digits. Calendar validity is not checked.
DATE_PATTERN = r"^(\d{8})?$"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


def _strip_login(value):
    return value.strip() if isinstance(value, str) else value


# Both auth bodies normalize login identically, so " neo" registers and logs in as "neo".
Login = Annotated[str, BeforeValidator(_strip_login), Field(min_length=1, max_length=255)]


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    login: Login
    password: str = Field(min_length=1, max_length=255)


class RegistrationRequest(BaseModel):
    """Request body for POST /registration.

    role is 0 (regular) or 1 (admin). Any other value is rejected with 400.
    Surrounding whitespace is stripped from login only; it is significant in
    passwords.
    """

    login: Login
    # bcrypt ignores bytes past 72; the Authenticator checks the byte length.
    password: str = Field(min_length=1, max_length=72)
    role: Role = Role.REGULAR


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Body of a successful login. The token itself travels in the Authorization header."""

    model_config = ConfigDict(frozen=True)

    message: str = "ok"
    login: str
    role: int
    expires_in: int


# ---------------------------------------------------------------------------
# Catalog -- request models
# ---------------------------------------------------------------------------


class FragmentRequest(BaseModel):
    """Request body for POST /filmspiece."""

    key: SearchTarget = SearchTarget.FILM
    fragment: str = Field(min_length=1, max_length=150)


class IdRequest(BaseModel):
    """Request body for DELETE /admin/film and DELETE /admin/actor."""

    id: int


class FilmIn(BaseModel):
    """Request body for POST /admin/films.

    actors lists the ids of actors appearing in the film. On update it
    replaces the existing set; omit it (or pass []) to unlink every actor.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=150)
    description: str = Field(default="", max_length=1000)
    date: str = Field(default="", pattern=DATE_PATTERN)
    rating: float = Field(default=0.0, ge=0, le=10)
    actors: list[int] = Field(default_factory=list)

    def to_domain(self, film_id: Optional[int] = None) -> Film:
        return Film(
            id=film_id,
            name=self.name,
            description=self.description,
            date=self.date,
            rating=self.rating,
            actor_ids=list(self.actors),
        )


class FilmUpdate(FilmIn):
    """Request body for PUT /admin/film -- the full record plus its id."""

    id: int


class ActorIn(BaseModel):
    """Request body for POST /admin/actors. films works like FilmIn.actors."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=150)
    surname: str = Field(default="", max_length=150)
    fathername: str = Field(default="", max_length=150)
    birthdate: str = Field(default="", pattern=DATE_PATTERN)
    sex: str = Field(default="", max_length=16)
    films: list[int] = Field(default_factory=list)

    def to_domain(self, actor_id: Optional[int] = None) -> Actor:
        return Actor(
            id=actor_id,
            name=self.name,
            surname=self.surname,
            fathername=self.fathername,
            birthdate=self.birthdate,
            sex=self.sex,
            film_ids=list(self.films),
        )


class ActorUpdate(ActorIn):
    """Request body for PUT /admin/actor -- the full record plus its id."""

    id: int


# ---------------------------------------------------------------------------
# Catalog -- response models
# ---------------------------------------------------------------------------


class FilmOut(BaseModel):
    """One film in a sorted listing or search result."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    date: str
    rating: float

    @classmethod
    def from_domain(cls, film: Film) -> "FilmOut":
        return cls(id=film.id, name=film.name, description=film.description, date=film.date, rating=film.rating)


class FilmDetailOut(FilmOut):
    """A film as returned by create/update, including its linked actor ids."""

    actors: list[int]

    @classmethod
    def from_domain(cls, film: Film) -> "FilmDetailOut":
        return cls(
            id=film.id,
            name=film.name,
            description=film.description,
            date=film.date,
            rating=film.rating,
            actors=film.actor_ids,
        )


class FilmRefOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @classmethod
    def from_domain(cls, ref: FilmRef) -> "FilmRefOut":
        return cls(id=ref.id, name=ref.name)


class ActorOut(BaseModel):
    """One row of GET /actors: the actor with its films embedded as {id, name}."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    surname: str
    fathername: str
    birthdate: str
    sex: str
    films: list[FilmRefOut]

    @classmethod
    def from_domain(cls, item: ActorWithFilms) -> "ActorOut":
        a = item.actor
        return cls(
            id=a.id,
            name=a.name,
            surname=a.surname,
            fathername=a.fathername,
            birthdate=a.birthdate,
            sex=a.sex,
            films=[FilmRefOut.from_domain(f) for f in item.films],
        )


class ActorDetailOut(BaseModel):
    """An actor as returned by create/update, including its linked film ids."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    surname: str
    fathername: str
    birthdate: str
    sex: str
    films: list[int]

    @classmethod
    def from_domain(cls, actor: Actor) -> "ActorDetailOut":
        return cls(
            id=actor.id,
            name=actor.name,
            surname=actor.surname,
            fathername=actor.fathername,
            birthdate=actor.birthdate,
            sex=actor.sex,
            films=actor.film_ids,
        )


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorResponse(BaseModel):
    """Envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
