"""Bearer-facing validate/cast flow with API error mapping."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import partial
from typing import TypeVar

from ballot.config import settings
from ballot.schemas.records import Vote
from ballot.schemas.voting import (
    AuthorizationContext,
    Authorized,
    Cast,
    CredentialError,
    Rejected,
)
from ballot.services.cast_service import VoteCaster
from ballot.services.validator_service import CredentialValidator
from ballot.store import Store
from ballot.utils.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    GoneError,
    InvalidInputError,
    NotFoundError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

OutcomeT = TypeVar("OutcomeT")

RETRY_BACKOFF_SECONDS = 0.2


def retry_on_store_unavailable(
    run: Callable[[], OutcomeT],
    attempts: int | None = None,
    backoff_seconds: float = RETRY_BACKOFF_SECONDS,
) -> OutcomeT:
    """Repeat ``run`` while it reports ``STORE_UNAVAILABLE``, a bounded number of times."""
    max_attempts = max(1, attempts or settings.store_retry_attempts)
    outcome = run()
    for attempt in range(1, max_attempts):
        if not (
            isinstance(outcome, Rejected) and outcome.error is CredentialError.STORE_UNAVAILABLE
        ):
            break
        logger.info("Store unavailable, retry %s of %s", attempt, max_attempts - 1)
        time.sleep(backoff_seconds * attempt)
        outcome = run()
    return outcome


def to_app_error(rejection: Rejected) -> AppError:
    """Map a typed rejection to the API error shown to the bearer."""
    error = rejection.error
    if error is CredentialError.NOT_FOUND:
        return NotFoundError("Voting link")
    if error is CredentialError.WRONG_CREDENTIAL_KIND:
        return InvalidInputError("Invalid link type", code=error.value)
    if error is CredentialError.DEACTIVATED:
        return GoneError(
            "This voting link has been deactivated or already used", code=error.value
        )
    if error is CredentialError.EXPIRED:
        return GoneError(
            "This voting link has expired. Please contact the administrator for a new link.",
            code=error.value,
        )
    if error is CredentialError.VOTER_NOT_FOUND:
        return NotFoundError("Voter", code=error.value)
    if error is CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL:
        return ForbiddenError(
            rejection.detail or "You are not authorized to use this voting link.",
            code=error.value,
        )
    if error is CredentialError.VOTER_SUSPENDED:
        return ForbiddenError(
            "Your voting privileges have been suspended. Please contact the administrator.",
            code=error.value,
        )
    if error is CredentialError.ALREADY_VOTED:
        return ConflictError("You have already cast your vote.", code=error.value)
    if error is CredentialError.CATEGORY_NOT_FOUND:
        return NotFoundError("Election category", code=error.value)
    if error is CredentialError.CANDIDATE_NOT_FOUND:
        return NotFoundError("Selected candidate", code=error.value)
    if error is CredentialError.CANDIDATE_INACTIVE:
        return ConflictError("Selected candidate is not active.", code=error.value)
    if error is CredentialError.STORE_UNAVAILABLE:
        return ServiceUnavailableError(
            "An error occurred while processing your vote. Please try again."
        )
    if error is CredentialError.MALFORMED_CREDENTIAL:
        return InvalidInputError("This voting link is malformed.", code=error.value)
    return InvalidInputError("Voting link validation failed")


class VotingService:
    """Validate credentials and cast votes, raising API errors on rejection."""

    def __init__(self, store: Store) -> None:
        self.validator = CredentialValidator(store)
        self.caster = VoteCaster(store)

    def authorize(
        self,
        reference: str,
        bearer_secret: str | None = None,
        link_kind: str | None = None,
    ) -> AuthorizationContext:
        """Return the authorization context for a credential."""
        if link_kind == "unified":
            run = partial(self.validator.validate_unified_link, reference, bearer_secret)
        elif link_kind == "particular":
            run = partial(self.validator.validate_particular_link, reference, bearer_secret)
        else:
            run = partial(self.validator.validate, reference, bearer_secret)

        outcome = retry_on_store_unavailable(run)
        if isinstance(outcome, Rejected):
            logger.info("Credential rejected: %s", outcome.error.value)
            raise to_app_error(outcome)
        assert isinstance(outcome, Authorized)
        return outcome.context

    def cast(
        self,
        reference: str,
        candidate_id: str,
        bearer_secret: str | None = None,
        link_kind: str | None = None,
    ) -> Vote:
        """Re-validate the credential and cast one vote with the fresh context."""
        context = self.authorize(reference, bearer_secret, link_kind=link_kind)
        outcome = retry_on_store_unavailable(partial(self.caster.cast, context, candidate_id))
        if isinstance(outcome, Rejected):
            logger.info("Cast rejected for voter %s: %s", context.voter_id, outcome.error.value)
            raise to_app_error(outcome)
        assert isinstance(outcome, Cast)
        return outcome.vote
