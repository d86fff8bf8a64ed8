"""
api/routes/auth.py -- Login and registration endpoints.

Routes:
  POST /login          -- password login; token returned in the Authorization header
  POST /registration   -- create a user (regular or admin)

Security:
  Both routes are rate-limited to 10 requests/minute per IP by the app's own
  Limiter, passed into build_auth_router(). Unknown login and wrong password
  produce the same 401 body so the response does not reveal which logins
  exist. Login responses carry Cache-Control: no-store.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from api.limiter import AUTH_RATE_LIMIT
from api.models import ErrorResponse, LoginRequest, LoginResponse, MessageResponse, RegistrationRequest
from auth.authenticator import Authenticator
from core.errors import AuthError

_BAD_CREDENTIALS = "Invalid login or password."


def build_auth_router(limiter: Limiter) -> APIRouter:
    """Return the public auth routes, rate limited by limiter.

    Auth policy:
    - POST /login:         public -- login endpoint must be unauthenticated
    - POST /registration:  public -- anyone may register
    """
    router = APIRouter(tags=["Auth"])

    # @limiter.limit sits below @router so the route registers the wrapper.
    @router.post("/login", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
    @limiter.limit(AUTH_RATE_LIMIT)
    def login(request: Request, body: LoginRequest) -> JSONResponse:
        """Authenticate with login and password.

        On success the signed token is returned in the Authorization response
        header; clients send it back verbatim in the Authorization request header.
        """
        authenticator: Authenticator = request.app.state.authenticator
        try:
            token = authenticator.login(body.login, body.password)
        except AuthError:
            resp = JSONResponse(status_code=401, content=ErrorResponse(error=_BAD_CREDENTIALS).model_dump())
            resp.headers["Cache-Control"] = "no-store"
            return resp

        claims = request.app.state.token_codec.verify(token).claims
        resp = JSONResponse(
            status_code=200,
            content=LoginResponse(
                login=claims.login,
                role=int(claims.role),
                expires_in=request.app.state.token_codec.expire_seconds,
            ).model_dump(),
        )
        resp.headers["Authorization"] = token
        resp.headers["Cache-Control"] = "no-store"
        return resp

    @router.post(
        "/registration",
        response_model=MessageResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
    )
    @limiter.limit(AUTH_RATE_LIMIT)
    def register(request: Request, body: RegistrationRequest) -> MessageResponse:
        """Create a user. A login that already exists is a 400."""
        authenticator: Authenticator = request.app.state.authenticator
        authenticator.register(body.login, body.password, body.role)
        return MessageResponse(message="created")

    return router
