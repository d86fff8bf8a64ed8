"""
core/errors.py -- Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to, so the exception handlers in
api/main.py can render any of them with a single code path:

  ValidationError      400  malformed or missing input
  DuplicateLoginError  400  registration hit the unique login index
  AuthError            401  missing/invalid/expired token, wrong role, bad login
  NotFoundError        404  no matching rows
  StoreError           500  persistence or connectivity failure

Stores raise StoreError; the Query Engine and Catalog Mutator let it pass
through unchanged. Nothing below the HTTP layer catches these.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

from enum import Enum


class AuthFailure(str, Enum):
    """Why a request or login was not authenticated.

    The value is logged server-side only. Clients get a generic message so
    the response does not reveal which check failed.
    """

    MISSING_TOKEN = "missing_token"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    INVALID_CLAIMS = "invalid_claims"
    INSUFFICIENT_ROLE = "insufficient_role"
    USER_NOT_FOUND = "user_not_found"
    BAD_CREDENTIALS = "bad_credentials"


class AppError(Exception):
    """Base class for errors rendered as {"error": message}."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request."


class DuplicateLoginError(ValidationError):
    default_message = "A user with that login already exists."


class AuthError(AppError):
    """Authentication or authorization failure.

    failure is the machine-readable reason; message is what the client sees.
    """

    status_code = 401
    default_message = "Unauthorized."

    def __init__(self, failure: AuthFailure, message: str | None = None) -> None:
        self.failure = failure
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found."


class StoreError(AppError):
    """Persistence failure. The original exception is chained as __cause__."""

    status_code = 500
    default_message = "Storage is unavailable."
