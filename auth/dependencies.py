"""
auth/dependencies.py -- FastAPI Depends() helpers forming the Access Guard.

Every protected request walks the same short state machine:

  Start -> TokenExtracted -> Verified -> RoleChecked -> Admitted

and is rejected with AuthError (HTTP 401) at the first step that fails:
  - no Authorization header                  -> MISSING_TOKEN
  - TokenCodec.verify() reports a failure     -> that failure
  - admin route, token role is not Admin      -> INSUFFICIENT_ROLE

The guard reads the shared TokenCodec from app.state, keeps no state of its
own, and does no business logic: on admission it returns the verified Claims
and the route handler carries on.

require_user() admits any valid token. require_admin() also checks the role.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Claims
from auth.tokens import TokenCodec
from core.errors import AuthError, AuthFailure

logger = logging.getLogger("filmlibrary.auth")

_HEADER = "Authorization"


def _extract_token(request: Request) -> str | None:
    """Return the token from the Authorization header, or None if absent.

    Accepts both the bare token (what /login hands out) and the conventional
    "Bearer <token>" form.
    """
    raw = request.headers.get(_HEADER, "").strip()
    if raw[:7].lower() == "bearer ":
        raw = raw[7:].strip()
    return raw or None


def _reject(request: Request, failure: AuthFailure) -> AuthError:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, failure.value)
    return AuthError(failure)


def require_user(request: Request) -> Claims:
    """Require a valid session token. Raises AuthError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: Claims = Depends(require_user)): ...
    """
    token = _extract_token(request)
    if token is None:
        raise _reject(request, AuthFailure.MISSING_TOKEN)

    codec: TokenCodec = request.app.state.token_codec
    result = codec.verify(token)
    if not result.ok:
        raise _reject(request, result.failure)
    return result.claims


def require_admin(request: Request) -> Claims:
    """Require a valid session token with the Admin role. Raises AuthError (401) otherwise."""
    claims = require_user(request)
    if not claims.is_admin:
        raise _reject(request, AuthFailure.INSUFFICIENT_ROLE)
    return claims
