"""FastAPI dependency injection helpers."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Header

from ballot.config import settings
from ballot.store import Store, get_store
from ballot.utils.errors import UnauthorizedError
from ballot.utils.supabase_client import get_supabase_client

_token_cache: dict[str, tuple[float, Any]] = {}
_cache_lock = threading.Lock()


@dataclass(frozen=True)
class OperatorSession:
    """Authenticated election operator, passed explicitly to issuing endpoints."""

    user_id: str
    email: str | None = None


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    """Return a cache value when present and not expired."""
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
    max_entries: int,
) -> None:
    """Store a bounded cache value with TTL."""
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        bounded_max_entries = max(1, max_entries)
        if len(cache) >= bounded_max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    cached_user = _cache_get(_token_cache, token)
    if cached_user is not None:
        return cached_user

    supabase = get_supabase_client()

    try:
        response = supabase.auth.get_user(token)
        if not response or not response.user:
            raise UnauthorizedError("Invalid token")
        _cache_set(
            _token_cache,
            token,
            response.user,
            settings.auth_token_cache_ttl_seconds,
            settings.auth_token_cache_max_entries,
        )
        return response.user
    except UnauthorizedError:
        raise
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_operator(user: Any = Depends(get_authenticated_user)) -> OperatorSession:
    """Return the operator session for credential-issuing routes."""
    email = getattr(user, "email", None)
    return OperatorSession(
        user_id=str(user.id),
        email=email.strip().lower() if isinstance(email, str) and email.strip() else None,
    )


def get_store_dependency() -> Store:
    """Return the process-wide credential store."""
    return get_store()
