"""In-process store used for tests and local development."""

from __future__ import annotations

import copy
import threading
from typing import Any

from ballot.store.base import Snapshot


class MemoryStore:
    """Thread-safe dictionary-backed implementation of the store port."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, tuple[Any, int]] = {}
        self._lock = threading.RLock()
        for path, value in (initial or {}).items():
            self.set(path, value)

    def get(self, path: str) -> Snapshot:
        with self._lock:
            entry = self._data.get(path)
            if entry is None:
                return Snapshot(path=path)
            value, version = entry
            return Snapshot(path=path, value=copy.deepcopy(value), version=version)

    def set(self, path: str, value: Any) -> None:
        with self._lock:
            entry = self._data.get(path)
            version = entry[1] + 1 if entry else 1
            self._data[path] = (copy.deepcopy(value), version)

    def create(self, path: str, value: Any) -> bool:
        with self._lock:
            if path in self._data:
                return False
            self._data[path] = (copy.deepcopy(value), 1)
            return True

    def compare_and_set(self, path: str, value: Any, expected_version: int) -> bool:
        with self._lock:
            entry = self._data.get(path)
            if entry is None or entry[1] != expected_version:
                return False
            self._data[path] = (copy.deepcopy(value), expected_version + 1)
            return True

    def increment(self, path: str, amount: int = 1) -> int:
        with self._lock:
            entry = self._data.get(path)
            current = int(entry[0] or 0) if entry else 0
            version = entry[1] + 1 if entry else 1
            updated = current + amount
            self._data[path] = (updated, version)
            return updated

    def commit_vote(
        self,
        voter_path: str,
        voter_value: Any,
        expected_version: int,
        vote_path: str,
        vote_value: Any,
        tally_path: str,
    ) -> bool:
        with self._lock:
            entry = self._data.get(voter_path)
            if entry is None or entry[1] != expected_version:
                return False
            self._data[voter_path] = (copy.deepcopy(voter_value), expected_version + 1)
            self.set(vote_path, vote_value)
            self.increment(tally_path, 1)
            return True

    def delete(self, path: str) -> None:
        nested = f"{path}/"
        with self._lock:
            for key in [key for key in self._data if key == path or key.startswith(nested)]:
                del self._data[key]

    def children(self, prefix: str) -> dict[str, Any]:
        nested = f"{prefix.rstrip('/')}/"
        with self._lock:
            result: dict[str, Any] = {}
            for key, (value, _version) in self._data.items():
                if not key.startswith(nested):
                    continue
                child = key[len(nested):]
                if "/" in child:
                    continue
                result[child] = copy.deepcopy(value)
            return result

    def paths(self) -> list[str]:
        """Return every stored path (test helper)."""
        with self._lock:
            return sorted(self._data)
