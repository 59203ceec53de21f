"""Supabase-backed implementation of the store port.

Documents live in one table, ``kv_nodes(path, value jsonb, version)``. A
trigger bumps ``version`` on every update, so an ``UPDATE ... WHERE path = ?
AND version = ?`` that touches no row is a lost compare-and-set. Counters go
through the ``kv_increment`` Postgres function and a cast goes through
``kv_cast_vote``, which claims the voter, stores the vote and bumps the tally
in one transaction. A generated ``parent`` column lets ``children`` select one
level of the hierarchy. See ``supabase/kv_nodes.sql``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from postgrest import APIError

from ballot.config import settings
from ballot.store.base import Snapshot
from ballot.utils.errors import StoreUnavailableError
from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def like_escape(text: str) -> str:
    """Escape LIKE wildcards so ``text`` only matches itself."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def is_unique_violation(exc: APIError) -> bool:
    """Return True when an insert failed due to an existing path."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return "duplicate key value" in message or code == UNIQUE_VIOLATION


class SupabaseStore:
    """Store port over a single Supabase table."""

    def __init__(self, client: Client, table: str | None = None) -> None:
        self.client = client
        self.table = table or settings.store_table

    def execute(self, query, default: Any = None) -> Any:
        """Execute a PostgREST query and normalize transport failures."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except httpx.TimeoutException as exc:
            logger.warning("Store call timed out on %s", self.table)
            raise StoreUnavailableError("Store request timed out") from exc
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Store transport error: {exc}") from exc
        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_store_call_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow store call %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def _run(self, query, default: Any = None) -> Any:
        try:
            return self.execute(query, default=default)
        except APIError as exc:
            message = getattr(exc, "message", "Store request failed")
            raise StoreUnavailableError(str(message)) from exc

    def get(self, path: str) -> Snapshot:
        rows = self._run(
            self.client.table(self.table).select("value,version").eq("path", path).limit(1),
            default=[],
        )
        if not rows:
            return Snapshot(path=path)
        row = rows[0]
        return Snapshot(path=path, value=row.get("value"), version=int(row["version"]))

    def set(self, path: str, value: Any) -> None:
        self._run(
            self.client.table(self.table).upsert(
                {"path": path, "value": value},
                on_conflict="path",
            ),
            default=[],
        )

    def create(self, path: str, value: Any) -> bool:
        try:
            self.execute(
                self.client.table(self.table).insert({"path": path, "value": value}),
                default=[],
            )
        except APIError as exc:
            if is_unique_violation(exc):
                return False
            message = getattr(exc, "message", "Store request failed")
            raise StoreUnavailableError(str(message)) from exc
        return True

    def compare_and_set(self, path: str, value: Any, expected_version: int) -> bool:
        rows = self._run(
            self.client.table(self.table)
            .update({"value": value})
            .eq("path", path)
            .eq("version", expected_version),
            default=[],
        )
        return bool(rows)

    def increment(self, path: str, amount: int = 1) -> int:
        result = self._run(
            self.client.rpc(
                settings.store_increment_function,
                {"p_path": path, "p_amount": amount},
            ),
        )
        if isinstance(result, list):
            result = result[0] if result else 0
        if isinstance(result, dict):
            result = next(iter(result.values()), 0)
        return int(result or 0)

    def commit_vote(
        self,
        voter_path: str,
        voter_value: Any,
        expected_version: int,
        vote_path: str,
        vote_value: Any,
        tally_path: str,
    ) -> bool:
        result = self._run(
            self.client.rpc(
                settings.store_cast_vote_function,
                {
                    "p_voter_path": voter_path,
                    "p_voter_value": voter_value,
                    "p_expected_version": expected_version,
                    "p_vote_path": vote_path,
                    "p_vote_value": vote_value,
                    "p_tally_path": tally_path,
                },
            ),
        )
        if isinstance(result, list):
            result = result[0] if result else False
        if isinstance(result, dict):
            result = next(iter(result.values()), False)
        return bool(result)

    def delete(self, path: str) -> None:
        self._run(self.client.table(self.table).delete().eq("path", path), default=[])
        self._run(
            self.client.table(self.table).delete().like("path", f"{like_escape(path)}/%"),
            default=[],
        )

    def children(self, prefix: str) -> dict[str, Any]:
        parent = prefix.rstrip("/")
        page_size = max(1, settings.store_page_size)
        result: dict[str, Any] = {}
        start = 0
        while True:
            rows = self._run(
                self.client.table(self.table)
                .select("path,value")
                .eq("parent", parent)
                .order("path")
                .range(start, start + page_size - 1),
                default=[],
            )
            for row in rows:
                child = str(row["path"])[len(parent) + 1:]
                if child:
                    result[child] = row.get("value")
            if len(rows) < page_size:
                return result
            start += page_size
