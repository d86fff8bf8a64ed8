"""
catalog/mutator.py -- Write side of the catalog.

Validates records before they reach the store and turns the store's
"row not found" booleans into NotFoundError. Updates are full-record
replacements: every field, and the association set, comes from the caller.

Role checks are not repeated here. Only admin routes (guarded by
auth.dependencies.require_admin) hold a reference to the mutator.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

from catalog.models import Actor, Film
from catalog.store import CatalogStore
from core.errors import NotFoundError, ValidationError

logger = logging.getLogger("filmlibrary.catalog")

_DATE_RE = re.compile(r"^\d{8}$")


def _check_name(name: str) -> None:
    if not name or not name.strip():
        raise ValidationError("name must not be empty.")


def _check_date(field: str, value: str) -> None:
    """Empty is allowed; otherwise exactly eight digits (YYYYMMDD)."""
    if value and not _DATE_RE.match(value):
        raise ValidationError(f"{field} must be in YYYYMMDD format.")


class CatalogMutator:
    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Films
    # ------------------------------------------------------------------

    def create_film(self, film: Film) -> Film:
        """Validate and insert a film. Returns the stored record with its new id."""
        self._validate_film(film)
        try:
            film_id = self._store.create_film(film)
        except IntegrityError as exc:
            raise ValidationError("Film references an actor that no longer exists.") from exc
        logger.info("Created film %d", film_id)
        return self._store.get_film(film_id)

    def update_film(self, film: Film) -> Film:
        """Replace film.id with film. Raises NotFoundError if it does not exist.

        Existence is checked before the fields and links, so a missing id is
        a 404 even when the body is also invalid.
        """
        if film.id is None:
            raise ValidationError("id is required.")
        if self._store.get_film(film.id) is None:
            raise NotFoundError(f"Film {film.id} not found.")
        self._validate_film(film)
        try:
            updated = self._store.update_film(film)
        except IntegrityError as exc:
            raise ValidationError("Film references an actor that no longer exists.") from exc
        if not updated:
            raise NotFoundError(f"Film {film.id} not found.")
        logger.info("Updated film %d", film.id)
        return self._store.get_film(film.id)

    def delete_film(self, film_id: int) -> None:
        """Delete a film and its actor links. Raises NotFoundError if it does not exist."""
        if not self._store.delete_film(film_id):
            raise NotFoundError(f"Film {film_id} not found.")
        logger.info("Deleted film %d", film_id)

    def _validate_film(self, film: Film) -> None:
        _check_name(film.name)
        _check_date("date", film.date)
        missing = self._store.missing_actor_ids(film.actor_ids)
        if missing:
            raise ValidationError(f"Unknown actor ids: {missing}.")

    # ------------------------------------------------------------------
    # Actors
    # ------------------------------------------------------------------

    def create_actor(self, actor: Actor) -> Actor:
        """Validate and insert an actor. Returns the stored record with its new id."""
        self._validate_actor(actor)
        try:
            actor_id = self._store.create_actor(actor)
        except IntegrityError as exc:
            raise ValidationError("Actor references a film that no longer exists.") from exc
        logger.info("Created actor %d", actor_id)
        return self._store.get_actor(actor_id)

    def update_actor(self, actor: Actor) -> Actor:
        """Replace actor.id with actor. Raises NotFoundError if it does not exist."""
        if actor.id is None:
            raise ValidationError("id is required.")
        if self._store.get_actor(actor.id) is None:
            raise NotFoundError(f"Actor {actor.id} not found.")
        self._validate_actor(actor)
        try:
            updated = self._store.update_actor(actor)
        except IntegrityError as exc:
            raise ValidationError("Actor references a film that no longer exists.") from exc
        if not updated:
            raise NotFoundError(f"Actor {actor.id} not found.")
        logger.info("Updated actor %d", actor.id)
        return self._store.get_actor(actor.id)

    def delete_actor(self, actor_id: int) -> None:
        """Delete an actor and its film links. Raises NotFoundError if it does not exist."""
        if not self._store.delete_actor(actor_id):
            raise NotFoundError(f"Actor {actor_id} not found.")
        logger.info("Deleted actor %d", actor_id)

    def _validate_actor(self, actor: Actor) -> None:
        _check_name(actor.name)
        _check_date("birthdate", actor.birthdate)
        missing = self._store.missing_film_ids(actor.film_ids)
        if missing:
            raise ValidationError(f"Unknown film ids: {missing}.")
