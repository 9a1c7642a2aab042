"""
FastAPI dependencies - authentication and per-user rate limiting.

Routes receive the caller with `user = Depends(get_current_user)`; tests
replace it through `app.dependency_overrides`.
"""
import hashlib
from typing import Optional

from fastapi import Depends, Header, Response

from aichat.auth.supabase_client import AuthenticatedUser, get_supabase_auth
from aichat.cache.redis_cache import USER_TTL, get_cache
from aichat.core.exceptions import AuthError, RateLimitError
from aichat.core.logging_config import get_logger
from aichat.core.rate_limiter import get_rate_limiter

logger = get_logger(__name__)


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("Missing authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Malformed authorization header")
    return token.strip()


def get_current_user(authorization: Optional[str] = Header(default=None)) -> AuthenticatedUser:
    """
    Resolve the caller from the bearer token.

    Verified users are cached under session:{sha256(token)} for the user TTL
    so repeated requests skip the round trip to Supabase.
    """
    token = _bearer_token(authorization)
    session_key = hashlib.sha256(token.encode("utf-8")).hexdigest()

    cache = get_cache()
    cached = cache.get_cached_session(session_key)
    if cached:
        return AuthenticatedUser.from_dict(cached)

    user = get_supabase_auth().get_user(token)
    cache.set_cached_session(session_key, user.to_dict(), ttl=USER_TTL)
    logger.debug(f"Authenticated user {user.id} ({user.user_type})")
    return user


def enforce_rate_limit(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user)
) -> AuthenticatedUser:
    """Apply the per-minute limit and report it in X-RateLimit-* headers."""
    limiter = get_rate_limiter()
    allowed, remaining = limiter.is_allowed(user.id)

    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    if not allowed:
        raise RateLimitError(retry_after=limiter.retry_after(user.id))
    return user
