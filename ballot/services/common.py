"""Shared store access helpers."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ballot.schemas.credentials import CredentialKind, StoredCredential
from ballot.schemas.records import Candidate, Category, Voter
from ballot.services import phone_matcher
from ballot.store import Store, paths
from ballot.utils.errors import MalformedRecordError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_stored_credential = TypeAdapter(StoredCredential)

# Link records written by the earlier web client carry no ``kind``, only a
# ``linkType`` (or ``link_type``) of "unified" or "particular".
_LEGACY_LINK_TYPES = {
    "unified": CredentialKind.UNIFIED_LINK.value,
    "particular": CredentialKind.PARTICULAR_LINK.value,
}


class StoreService:
    """Thin helper wrapper around a store."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def read(self, path: str) -> Any | None:
        """Return the raw document at ``path`` or ``None``."""
        snapshot = self.store.get(path)
        return snapshot.value if snapshot.exists else None

    def read_model(self, path: str, model: type[ModelT], record_id: str) -> ModelT | None:
        """Load and parse one record; raise MalformedRecordError on bad data."""
        value = self.read(path)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise MalformedRecordError(path, "expected an object")
        try:
            return model.model_validate({**value, "id": record_id})
        except ValidationError as exc:
            raise MalformedRecordError(path, str(exc)) from exc

    def voter(self, voter_id: str) -> Voter | None:
        if not paths.is_valid_key(voter_id):
            return None
        return self.read_model(paths.voter(voter_id), Voter, voter_id)

    def category(self, category_id: str) -> Category | None:
        if not paths.is_valid_key(category_id):
            return None
        return self.read_model(paths.category(category_id), Category, category_id)

    def candidate(self, candidate_id: str) -> Candidate | None:
        if not paths.is_valid_key(candidate_id):
            return None
        candidate = self.read_model(paths.candidate(candidate_id), Candidate, candidate_id)
        if candidate is None:
            return None
        tally = self.read(paths.candidate_votes(candidate_id))
        return candidate.model_copy(update={"votes": int(tally or 0)})

    def active_candidates(self, category_id: str) -> list[Candidate]:
        """Return active candidates of one category, ordered by id."""
        rows = self.store.children(paths.CANDIDATES)
        candidates: list[Candidate] = []
        for candidate_id in sorted(rows):
            row = rows[candidate_id]
            if not isinstance(row, dict):
                continue
            if str(row.get("category_id")) != category_id or not row.get("active", True):
                continue
            try:
                candidates.append(Candidate.model_validate({**row, "id": candidate_id}))
            except ValidationError:
                logger.warning("Skipping malformed candidate %s", candidate_id)
        return candidates

    def stored_credential(self, credential_id: str):
        """Resolve an id against ``tokens/`` then ``voting-links/``.

        Returns ``None`` when neither holds the id.
        """
        if not paths.is_valid_key(credential_id):
            return None
        token = self.read(paths.token(credential_id))
        if token is not None:
            return self._parse_credential(
                paths.token(credential_id),
                token,
                credential_id,
                default_kind=CredentialKind.LEGACY_TOKEN.value,
            )
        return self.voting_link(credential_id)

    def voting_link(self, link_id: str):
        """Return the link stored at ``voting-links/{link_id}`` or ``None``."""
        if not paths.is_valid_key(link_id):
            return None
        path = paths.voting_link(link_id)
        link = self.read(path)
        if link is None:
            return None
        return self._parse_credential(path, link, link_id, default_kind=None)

    @staticmethod
    def _parse_credential(
        path: str,
        value: Any,
        credential_id: str,
        default_kind: str | None,
    ):
        if not isinstance(value, dict):
            raise MalformedRecordError(path, "expected an object")
        payload = {**value, "id": credential_id}
        if "kind" not in payload:
            link_type = payload.get("link_type", payload.get("linkType"))
            kind = default_kind or _LEGACY_LINK_TYPES.get(str(link_type))
            if kind is None:
                raise MalformedRecordError(path, "unknown credential kind")
            payload["kind"] = kind
        try:
            return _stored_credential.validate_python(payload)
        except ValidationError as exc:
            raise MalformedRecordError(path, str(exc)) from exc

    def find_voter_id_by_phone(self, phone: str) -> str | None:
        """Resolve a bearer-typed phone to a voter id.

        Probes the phone index with every variant first, then falls back to
        scanning all voters.
        """
        for key in phone_matcher.index_keys(phone):
            if not paths.is_valid_key(key):
                continue
            voter_id = self.read(paths.voter_by_phone(key))
            if voter_id:
                return str(voter_id)

        voters = self.store.children(paths.VOTERS)
        for voter_id in sorted(voters):
            row = voters[voter_id]
            if isinstance(row, dict) and phone_matcher.phones_match(phone, row.get("phone")):
                logger.info("Voter %s matched by full scan", voter_id)
                return voter_id
        return None

    def has_used(self, credential_path: str, voter_id: str) -> bool:
        """Return whether ``voter_id`` already used a reusable credential."""
        return self.store.get(paths.used_by(credential_path, voter_id)).exists

    def is_consumed(self, digest: str) -> bool:
        """Return whether a self-encoded token was already spent."""
        return self.store.get(paths.token_consumed(digest)).exists


def credential_path(kind: CredentialKind, credential_id: str) -> str:
    """Return the store path that tracks usage of a credential."""
    if kind is CredentialKind.LEGACY_TOKEN:
        return paths.token(credential_id)
    if kind is CredentialKind.SELF_ENCODED:
        return paths.token_consumed(credential_id)
    if kind in (CredentialKind.UNIFIED_LINK, CredentialKind.PARTICULAR_LINK):
        return paths.voting_link(credential_id)
    raise ValueError(f"Unknown credential kind: {kind!r}")
