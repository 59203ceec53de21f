"""Vote casting.

A vote counts only through one conditional write: the store's ``commit_vote``
flips ``has_voted`` on the voter record at the version that was read, stores
the vote document and bumps the candidate tally, all or nothing. Whoever wins
that write has voted; everyone else gets ``ALREADY_VOTED``. Only the
credential usage marker is written afterwards, on its own path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import assert_never

from pydantic import ValidationError

from ballot.config import settings
from ballot.schemas.credentials import CredentialKind, TokenType
from ballot.schemas.records import Vote, Voter
from ballot.schemas.voting import (
    AuthorizationContext,
    Cast,
    CastOutcome,
    CredentialError,
    Rejected,
)
from ballot.services.common import StoreService, credential_path
from ballot.store import Store, merge_update, paths
from ballot.utils.errors import ConflictError, MalformedRecordError, StoreUnavailableError
from ballot.utils.time import now_ms

logger = logging.getLogger(__name__)


class VoteCaster:
    """Record votes for validated authorization contexts."""

    def __init__(self, store: Store, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.db = StoreService(store)
        self.clock = clock

    def cast(self, context: AuthorizationContext, candidate_id: str) -> CastOutcome:
        """Cast one vote for ``candidate_id`` using ``context``."""
        try:
            return self._cast(context, candidate_id)
        except StoreUnavailableError as exc:
            logger.warning("Store unavailable while casting for %s: %s", context.voter_id, exc)
            return Rejected(error=CredentialError.STORE_UNAVAILABLE, detail=str(exc))
        except MalformedRecordError as exc:
            logger.error("%s", exc)
            return Rejected(error=CredentialError.MALFORMED_CREDENTIAL, detail=str(exc))

    def _cast(self, context: AuthorizationContext, candidate_id: str) -> CastOutcome:
        if not any(candidate.id == candidate_id for candidate in context.candidates):
            return Rejected(error=CredentialError.CANDIDATE_NOT_FOUND)

        candidate = self.db.candidate(candidate_id)
        if candidate is None or candidate.category_id != context.category_id:
            return Rejected(error=CredentialError.CANDIDATE_NOT_FOUND)
        if not candidate.active:
            return Rejected(error=CredentialError.CANDIDATE_INACTIVE)

        voted_at = self.clock()
        vote = Vote(
            voter_id=context.voter_id,
            candidate_id=candidate.id,
            candidate_name=candidate.name,
            category_id=context.category_id,
            category_name=context.category_name,
            credential_id=context.credential_id,
            credential_kind=context.credential_kind.value,
            timestamp=voted_at,
        )
        rejected = self._commit(vote)
        if rejected is not None:
            return rejected

        self._close_credential(context, voted_at)
        logger.info(
            "Vote recorded for voter %s in category %s via %s %s",
            context.voter_id,
            context.category_id,
            context.credential_kind.value,
            context.credential_id,
        )
        return Cast(vote=vote)

    def _commit(self, vote: Vote) -> Rejected | None:
        """Claim the voter's single vote and record it; return a rejection on failure."""
        voter_id = vote.voter_id
        path = paths.voter(voter_id)
        for _attempt in range(max(1, settings.store_cas_attempts)):
            snapshot = self.store.get(path)
            if not snapshot.exists or snapshot.version is None:
                return Rejected(error=CredentialError.VOTER_NOT_FOUND)
            if not isinstance(snapshot.value, dict):
                raise MalformedRecordError(path, "expected an object")
            try:
                voter = Voter.model_validate({**snapshot.value, "id": voter_id})
            except ValidationError as exc:
                raise MalformedRecordError(path, str(exc)) from exc

            if voter.has_voted:
                return Rejected(error=CredentialError.ALREADY_VOTED)
            if not voter.active:
                return Rejected(error=CredentialError.VOTER_SUSPENDED)

            updated = {**snapshot.value, "has_voted": True, "voted_at": vote.timestamp}
            if self.store.commit_vote(
                path,
                updated,
                snapshot.version,
                paths.vote(voter_id, vote.credential_id),
                vote.model_dump(mode="json"),
                paths.candidate_votes(vote.candidate_id),
            ):
                return None
            logger.debug("Voter %s changed during cast, re-reading", voter_id)

        logger.warning("Gave up claiming voter %s after repeated conflicts", voter_id)
        return Rejected(
            error=CredentialError.STORE_UNAVAILABLE,
            detail="Voter record is being modified concurrently",
        )

    def _close_credential(self, context: AuthorizationContext, used_at: int) -> None:
        """Mark the credential spent for this voter; the vote stands regardless."""
        kind = context.credential_kind
        target = credential_path(kind, context.credential_id)
        try:
            if kind is CredentialKind.SELF_ENCODED:
                self.store.create(
                    target,
                    {
                        "voter_id": context.voter_id,
                        "category_id": context.category_id,
                        "used_at": used_at,
                        "expires_at": context.expires_at,
                    },
                )
            elif kind is CredentialKind.LEGACY_TOKEN:
                if context.token_type is TokenType.INDIVIDUAL:
                    merge_update(self.store, target, {"used": True, "used_at": used_at})
                else:
                    self.store.set(paths.used_by(target, context.voter_id), used_at)
            elif kind in (CredentialKind.UNIFIED_LINK, CredentialKind.PARTICULAR_LINK):
                self.store.set(paths.used_by(target, context.voter_id), used_at)
            else:
                assert_never(kind)
        except (StoreUnavailableError, ConflictError) as exc:
            logger.warning(
                "Vote for %s recorded but credential %s not marked used: %s",
                context.voter_id,
                context.credential_id,
                exc,
            )
