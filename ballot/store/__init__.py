"""Store port and adapters."""

from __future__ import annotations

from functools import lru_cache

from ballot.config import settings
from ballot.store.base import Snapshot, Store, merge_update
from ballot.store.memory import MemoryStore

__all__ = ["MemoryStore", "Snapshot", "Store", "get_store", "merge_update"]


@lru_cache(maxsize=1)
def get_store() -> Store:
    """Return the process-wide store selected by ``STORE_BACKEND``."""
    if settings.store_backend == "memory":
        return MemoryStore()
    if settings.store_backend == "supabase":
        from ballot.store.supabase_store import SupabaseStore
        from ballot.utils.supabase_client import get_service_client

        return SupabaseStore(get_service_client())
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")
