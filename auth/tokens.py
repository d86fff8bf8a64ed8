"""
auth/tokens.py -- Session token codec and password hashing utilities.

Security design decisions:
  Tokens: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       login, the stored password hash (opaque identity tag), role, and expiry.
       TokenCodec.verify() never raises -- it returns a TokenVerification whose
       failure field says why a token was refused. The Access Guard turns any
       failure into a 401.

  Passwords: bcrypt used directly. Its cost factor makes brute-force of
       low-entropy secrets expensive, and every hash carries its own random
       salt. The _DUMMY_HASH constant enables timing equalization in the
       Authenticator so response time does not reveal whether a login exists.

  SECRET_KEY: never read here. The codec is constructed with the key taken
       from core.config.Settings at startup and shared read-only afterwards.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.models import Claims, Role
from core.errors import AuthFailure

logger = logging.getLogger("filmlibrary.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes and bcrypt>=5 refuses longer input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password with a fresh salt."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A corrupt stored hash or an over-long password is a mismatch, not a crash.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("filmlibrary_timing_dummy")


# ---------------------------------------------------------------------------
# Token codec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of TokenCodec.verify(): exactly one of claims/failure is set."""

    claims: Claims | None = None
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenCodec:
    """Issues and verifies HS256 session tokens.

    Stateless apart from the secret and lifetime given at construction, so a
    single instance is safe to share across concurrent requests.

    Usage:
        codec = TokenCodec(settings.secret_key)
        token = codec.issue("alice", user.hashed_password, Role.ADMIN)
        result = codec.verify(token)
        if result.ok:
            result.claims.role
    """

    def __init__(self, secret_key: str, expire_seconds: int = 24 * 60 * 60) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def issue(
        self,
        login: str,
        password_hash: str,
        role: Role,
        issued_at: datetime | None = None,
    ) -> str:
        """Encode a signed token. Expiry is fixed at issued_at + expire_seconds.

        issued_at defaults to now; tests pass an earlier instant to mint
        tokens that are already expired.
        """
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "login": login,
            "hashedpassword": password_hash,
            "role": int(role),
            "exp": issued_at + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenVerification:
        """Check structure, signature, expiry and claim types, in that order.

        Malformed      -- not a JWT at all (bad segments, bad base64/JSON)
        BadSignature   -- parses, but was not signed with our key and algorithm
        Expired        -- valid signature, exp is in the past
        InvalidClaims  -- valid and fresh, but login/hash/role are missing or
                          role is not a known Role
        """
        # Parse without the key first so garbage is Malformed, not BadSignature.
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            return TokenVerification(failure=AuthFailure.MALFORMED)

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError:
            return TokenVerification(failure=AuthFailure.EXPIRED)
        except JWTClaimsError:
            return TokenVerification(failure=AuthFailure.INVALID_CLAIMS)
        except JWTError:
            return TokenVerification(failure=AuthFailure.BAD_SIGNATURE)

        if "exp" not in payload:
            return TokenVerification(failure=AuthFailure.INVALID_CLAIMS)
        login = payload.get("login")
        password_hash = payload.get("hashedpassword")
        if not isinstance(login, str) or not login or not isinstance(password_hash, str):
            return TokenVerification(failure=AuthFailure.INVALID_CLAIMS)
        try:
            role = Role.parse(payload.get("role"))
        except ValueError:
            return TokenVerification(failure=AuthFailure.INVALID_CLAIMS)

        return TokenVerification(
            claims=Claims(
                login=login,
                password_hash=password_hash,
                role=role,
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        )
