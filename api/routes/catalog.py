"""
api/routes/catalog.py -- Film and actor endpoints.

Query routes (identical for both roles, built by build_query_router()):
  POST /filmssorted   -- all films sorted by the raw-body key (rating|name|date)
  POST /filmspiece    -- films matching a name fragment of a film or actor
  GET  /actors        -- all actors with their films embedded

Mounted twice in api/main.py: at the root behind require_user, and under
/admin behind require_admin. The handler bodies exist once.

Mutation routes (admin_router, mounted under /admin, require_admin):
  POST   /films   -- create film          PUT    /film   -- replace film by id
  POST   /actors  -- create actor         PUT    /actor  -- replace actor by id
  DELETE /film    -- delete film by id    DELETE /actor  -- delete actor by id

Blocking store calls run in the thread pool: sync handlers are dispatched
there by FastAPI, and the one async handler (it has to read the raw body)
hands the query off with run_in_threadpool.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from api.models import (
    ActorDetailOut,
    ActorIn,
    ActorOut,
    ActorUpdate,
    ErrorResponse,
    FilmDetailOut,
    FilmIn,
    FilmOut,
    FilmUpdate,
    FragmentRequest,
    IdRequest,
    MessageResponse,
)
from auth.dependencies import require_admin
from auth.models import Claims
from catalog.models import SortKey
from catalog.mutator import CatalogMutator
from catalog.query import QueryEngine, parse_sort_key

_SORT_BODY = {
    "requestBody": {
        "content": {
            "text/plain": {
                "schema": {"type": "string", "enum": [k.value for k in SortKey] + [""]},
            }
        }
    }
}

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def build_query_router(guard: Callable[..., Claims]) -> APIRouter:
    """Return a router with the three read routes, every one gated by guard."""
    router = APIRouter(dependencies=[Depends(guard)], responses=_ERRORS)

    @router.post("/filmssorted", response_model=list[FilmOut], openapi_extra=_SORT_BODY)
    async def list_sorted_films(request: Request) -> list[FilmOut]:
        """Return every film ordered by the key in the raw request body.

        Empty body means rating. 404 when the catalog has no films.
        """
        raw = (await request.body()).decode("utf-8", errors="replace")
        key = parse_sort_key(raw)
        engine: QueryEngine = request.app.state.query_engine
        films = await run_in_threadpool(engine.list_sorted, key)
        return [FilmOut.from_domain(f) for f in films]

    @router.post("/filmspiece", response_model=list[FilmOut])
    def search_films(request: Request, body: FragmentRequest) -> list[FilmOut]:
        """Return films whose name (key=film) or actor name/surname (key=actor) contains fragment."""
        engine: QueryEngine = request.app.state.query_engine
        films = engine.search_by_fragment(body.key, body.fragment)
        return [FilmOut.from_domain(f) for f in films]

    @router.get("/actors", response_model=list[ActorOut])
    def list_actors(request: Request) -> list[ActorOut]:
        """Return all actors, each with its films as {id, name} pairs."""
        engine: QueryEngine = request.app.state.query_engine
        return [ActorOut.from_domain(a) for a in engine.list_actors()]

    return router


# Auth policy: every mutation is admin-only. Router-level dependency enforces
# it, so individual handlers don't repeat Depends(require_admin).
admin_router = APIRouter(dependencies=[Depends(require_admin)], responses=_ERRORS)


# ---------------------------------------------------------------------------
# Films
# ---------------------------------------------------------------------------


@admin_router.post("/films", response_model=FilmDetailOut, status_code=201)
def create_film(request: Request, body: FilmIn) -> FilmDetailOut:
    """Add a film. actors optionally links existing actor ids."""
    mutator: CatalogMutator = request.app.state.mutator
    return FilmDetailOut.from_domain(mutator.create_film(body.to_domain()))


@admin_router.put("/film", response_model=FilmDetailOut)
def update_film(request: Request, body: FilmUpdate) -> FilmDetailOut:
    """Replace every field of film body.id, including its actor links."""
    mutator: CatalogMutator = request.app.state.mutator
    return FilmDetailOut.from_domain(mutator.update_film(body.to_domain(body.id)))


@admin_router.delete("/film", response_model=MessageResponse)
def delete_film(request: Request, body: IdRequest) -> MessageResponse:
    """Delete film body.id; it disappears from every actor's film list."""
    mutator: CatalogMutator = request.app.state.mutator
    mutator.delete_film(body.id)
    return MessageResponse(message="deleted")


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@admin_router.post("/actors", response_model=ActorDetailOut, status_code=201)
def create_actor(request: Request, body: ActorIn) -> ActorDetailOut:
    """Add an actor. films optionally links existing film ids."""
    mutator: CatalogMutator = request.app.state.mutator
    return ActorDetailOut.from_domain(mutator.create_actor(body.to_domain()))


@admin_router.put("/actor", response_model=ActorDetailOut)
def update_actor(request: Request, body: ActorUpdate) -> ActorDetailOut:
    """Replace every field of actor body.id, including its film links."""
    mutator: CatalogMutator = request.app.state.mutator
    return ActorDetailOut.from_domain(mutator.update_actor(body.to_domain(body.id)))


@admin_router.delete("/actor", response_model=MessageResponse)
def delete_actor(request: Request, body: IdRequest) -> MessageResponse:
    """Delete actor body.id along with its film links."""
    mutator: CatalogMutator = request.app.state.mutator
    mutator.delete_actor(body.id)
    return MessageResponse(message="deleted")
