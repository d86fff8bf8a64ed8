"""
api/limiter.py -- slowapi Limiter construction.

create_app() builds one Limiter per application, parks it on
app.state.limiter (where SlowAPIMiddleware looks for it) and hands the same
object to api.routes.auth.build_auth_router(), which decorates /login and
/registration with it. Counters live in that Limiter's memory:// storage,
keyed by client IP, so two apps in one process never share counts and never
switch each other's limits on or off.

Settings.rate_limit_enabled=false builds a disabled Limiter; the test suite
logs in far more often than the limit allows.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Applied to both public auth routes, per client IP.
AUTH_RATE_LIMIT = "10/minute"


def build_limiter(enabled: bool) -> Limiter:
    return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=enabled)
