"""
catalog/query.py -- Read side of the catalog: sorted listing and fragment search.

Result-shape rules:
  - list_sorted() and search_by_fragment() treat "no rows" as a reportable
    miss and raise NotFoundError; the HTTP layer renders it as 404. Callers
    never receive an empty list from these two.
  - list_actors() has no miss: an empty catalog is an empty list.

Sort orders (ties always broken by ascending film id):
  rating -- highest first
  name   -- lexicographic, as the database compares strings
  date   -- oldest first (YYYYMMDD strings compare chronologically)

Fragment search is a case-insensitive substring match.

No caching: every call goes to the store, so results always reflect the
catalog at call time. StoreError from the store propagates unchanged.
"""

from __future__ import annotations

from catalog.models import ActorWithFilms, Film, SearchTarget, SortKey
from catalog.store import CatalogStore
from core.errors import NotFoundError, ValidationError

_NO_FILMS = "No films found"


def parse_sort_key(raw: str) -> SortKey:
    """Turn the raw sort selector body into a SortKey.

    Surrounding whitespace and a pair of JSON-style double quotes are ignored,
    so `rating`, `"rating"` and ` rating\\n` are all accepted. An empty
    selector means rating. Anything else is a ValidationError.
    """
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1].strip()
    if not value:
        return SortKey.RATING
    try:
        return SortKey(value.lower())
    except ValueError:
        allowed = ", ".join(k.value for k in SortKey)
        raise ValidationError(f"Unknown sort key {value!r}; expected one of: {allowed}.") from None


class QueryEngine:
    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def list_sorted(self, key: SortKey = SortKey.RATING) -> list[Film]:
        """Return every film in the requested order. Raises NotFoundError if there are none."""
        films = self._store.list_films(key)
        if not films:
            raise NotFoundError(_NO_FILMS)
        return films

    def search_by_fragment(self, target: SearchTarget, fragment: str) -> list[Film]:
        """Return films matching fragment by film name or by actor name/surname.

        Raises ValidationError for a blank fragment and NotFoundError when
        nothing matches.
        """
        fragment = fragment.strip()
        if not fragment:
            raise ValidationError("fragment must not be empty.")
        if target is SearchTarget.ACTOR:
            films = self._store.search_films_by_actor(fragment)
        else:
            films = self._store.search_films_by_name(fragment)
        if not films:
            raise NotFoundError(_NO_FILMS)
        return films

    def list_actors(self) -> list[ActorWithFilms]:
        return self._store.list_actors_with_films()
