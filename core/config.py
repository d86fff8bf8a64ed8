"""
core/config.py -- Film library settings, read from the environment by pydantic-settings.

Only this module reads environment variables. Everything else receives a
Settings object: asgi.py calls get_settings() once and passes the result to
api.main.create_app(), and the test suite builds Settings(...) by hand.

How it fits together:
  get_settings() is wrapped in lru_cache, so the environment and .env file
      are parsed on the first call only and the same object is returned after.

  Field names double as env var names, case-insensitively (token_expire_seconds
      <- TOKEN_EXPIRE_SECONDS). pydantic coerces "false", "60" and JSON lists
      into the declared types and rejects anything it cannot convert.

  validate_secret_key() runs once every field is populated and applies the
      signing key policy described below.

Signing key policy:
  The HS256 session tokens are only as strong as SECRET_KEY, so a key under
  32 characters is refused in every mode.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or catalog/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("filmlibrary.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Every tunable of the service. Env vars win over .env, which wins over defaults.

    Only secret_key lacks a usable default outside DEBUG; tests pass it in.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; validate_secret_key() never lets it through.
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Session tokens live for 24 hours from the moment of issue.
    token_expire_seconds: int = 24 * 60 * 60

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_ROOT / 'auth' / 'filmlibrary_auth.db'}"
    catalog_db_url: str = f"sqlite:///{_ROOT / 'catalog' / 'filmlibrary_catalog.db'}"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Fill in or reject SECRET_KEY, then sanity-check the token lifetime.

        With DEBUG a missing key is replaced by a random one, so tokens die
        with the process. Without DEBUG a missing key stops startup.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is not set. Export it or add it to .env "
                    "(DEBUG=true generates a throwaway key for local runs)."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, built from the environment on first use.

    Tests that change env vars must call get_settings.cache_clear().
    """
    return Settings()
