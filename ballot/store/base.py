"""Store port shared by the credential engine and its adapters.

The store is a hierarchical key-value space addressed by slash-delimited
paths. It offers point reads and writes, three single-key atomic primitives
(insert-if-absent, compare-and-set on a version, and counter increment) and
one store-native conditional write for casting a vote. There are no general
multi-key transactions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from ballot.config import settings
from ballot.utils.errors import ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Value read from one path together with its write version.

    ``version`` is ``None`` when nothing is stored at the path.
    """

    path: str
    value: Any = None
    version: int | None = None

    @property
    def exists(self) -> bool:
        return self.version is not None


class Store(Protocol):
    """Port implemented by every backing store.

    Adapters raise ``StoreUnavailableError`` when a call cannot complete
    within its bounded timeout or the transport fails.
    """

    def get(self, path: str) -> Snapshot:
        """Read the document stored at ``path``."""
        ...

    def set(self, path: str, value: Any) -> None:
        """Unconditionally write ``value`` at ``path``."""
        ...

    def create(self, path: str, value: Any) -> bool:
        """Write ``value`` only if ``path`` is empty; return whether it was written."""
        ...

    def compare_and_set(self, path: str, value: Any, expected_version: int) -> bool:
        """Replace the value at ``path`` only if its version still equals ``expected_version``."""
        ...

    def increment(self, path: str, amount: int = 1) -> int:
        """Atomically add ``amount`` to the integer at ``path`` and return the result."""
        ...

    def commit_vote(
        self,
        voter_path: str,
        voter_value: Any,
        expected_version: int,
        vote_path: str,
        vote_value: Any,
        tally_path: str,
    ) -> bool:
        """Claim a voter and record their vote as one all-or-nothing write.

        When the voter document is still at ``expected_version`` it is replaced
        by ``voter_value``, ``vote_value`` is written at ``vote_path`` and the
        counter at ``tally_path`` is incremented by one. Otherwise nothing is
        written and False is returned.
        """
        ...

    def delete(self, path: str) -> None:
        """Remove ``path`` and every path nested below it."""
        ...

    def children(self, prefix: str) -> dict[str, Any]:
        """Return ``{key: value}`` for documents exactly one level below ``prefix``."""
        ...


def merge_update(
    store: Store,
    path: str,
    changes: Mapping[str, Any],
    attempts: int | None = None,
) -> dict[str, Any] | None:
    """Merge ``changes`` into the mapping at ``path`` using compare-and-set.

    Returns the merged document, or ``None`` when the path is empty. Raises
    ``ConflictError`` after ``attempts`` consecutive version conflicts.
    """
    max_attempts = max(1, attempts or settings.store_cas_attempts)
    for _attempt in range(max_attempts):
        snapshot = store.get(path)
        if not snapshot.exists or snapshot.version is None:
            return None
        current = snapshot.value if isinstance(snapshot.value, dict) else {}
        merged = {**current, **changes}
        if store.compare_and_set(path, merged, snapshot.version):
            return merged
        logger.debug("Version conflict updating %s, retrying", path)
    raise ConflictError(
        f"Could not update {path} after {max_attempts} attempts",
        code="WRITE_CONFLICT",
    )
