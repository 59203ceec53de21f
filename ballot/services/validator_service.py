"""Credential validation.

Turns a bearer-presented credential (plus phone or personal token where the
shape needs one) into an ``AuthorizationContext``. Validation only reads the
store; nothing is consumed until a vote is cast.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from typing import assert_never

from pydantic import ValidationError

from ballot.schemas.credentials import (
    CredentialKind,
    LegacyToken,
    ParticularLink,
    SelfEncodedToken,
    TokenType,
    UnifiedLink,
)
from ballot.schemas.records import Voter
from ballot.schemas.voting import (
    AuthorizationContext,
    Authorized,
    CredentialError,
    Rejected,
    ValidationOutcome,
)
from ballot.services import credential_codec, phone_matcher
from ballot.services.common import StoreService, credential_path
from ballot.store import Store
from ballot.utils.errors import MalformedRecordError, StoreUnavailableError
from ballot.utils.time import is_expired, now_ms

logger = logging.getLogger(__name__)

Credential = LegacyToken | SelfEncodedToken | UnifiedLink | ParticularLink


class CredentialValidator:
    """Validate credentials into authorization contexts."""

    def __init__(self, store: Store, clock: Callable[[], int] = now_ms) -> None:
        self.db = StoreService(store)
        self.clock = clock

    def validate(self, reference: str, bearer_secret: str | None = None) -> ValidationOutcome:
        """Validate any credential shape."""
        return self._guarded(lambda: self._validate(reference, bearer_secret))

    def validate_unified_link(self, link_id: str, phone: str | None) -> ValidationOutcome:
        """Validate a ``/cast-vote/unified/{id}`` link with the bearer's phone."""
        return self._guarded(
            lambda: self._validate_link(link_id, phone, CredentialKind.UNIFIED_LINK)
        )

    def validate_particular_link(
        self, link_id: str, personal_token: str | None
    ) -> ValidationOutcome:
        """Validate a ``/cast-vote/particular/{id}?token=`` link."""
        return self._guarded(
            lambda: self._validate_link(link_id, personal_token, CredentialKind.PARTICULAR_LINK)
        )

    def _guarded(self, run: Callable[[], ValidationOutcome]) -> ValidationOutcome:
        try:
            return run()
        except StoreUnavailableError as exc:
            logger.warning("Store unavailable during validation: %s", exc)
            return Rejected(error=CredentialError.STORE_UNAVAILABLE, detail=str(exc))
        except MalformedRecordError as exc:
            logger.error("%s", exc)
            return Rejected(error=CredentialError.MALFORMED_CREDENTIAL, detail=str(exc))

    def _validate(self, reference: str, bearer_secret: str | None) -> ValidationOutcome:
        reference = (reference or "").strip()
        if not reference:
            return Rejected(error=CredentialError.NOT_FOUND)

        payload = credential_codec.decode(reference)
        if payload is not None and credential_codec.token_type_of(payload) == "individual":
            return self._check(self._self_encoded(payload), bearer_secret)

        credential = self.db.stored_credential(reference)
        if credential is None:
            return Rejected(error=CredentialError.NOT_FOUND)
        return self._check(credential, bearer_secret)

    def _validate_link(
        self,
        link_id: str,
        bearer_secret: str | None,
        expected: CredentialKind,
    ) -> ValidationOutcome:
        link = self.db.voting_link((link_id or "").strip())
        if link is None:
            return Rejected(error=CredentialError.NOT_FOUND)
        if link.kind != expected.value:
            return Rejected(error=CredentialError.WRONG_CREDENTIAL_KIND)
        return self._check(link, bearer_secret)

    @staticmethod
    def _self_encoded(payload: dict) -> SelfEncodedToken:
        if not credential_codec.signature_ok(payload):
            raise MalformedRecordError("self-encoded token", "signature mismatch")
        try:
            token = SelfEncodedToken.model_validate(payload)
        except ValidationError as exc:
            raise MalformedRecordError("self-encoded token", str(exc)) from exc
        return token.model_copy(update={"id": credential_codec.credential_id(payload)})

    def _check(self, credential: Credential, bearer_secret: str | None) -> ValidationOutcome:
        # Tokens report expiry before use; links report deactivation first.
        expired = is_expired(credential.expires_at, self.clock())
        if isinstance(credential, LegacyToken):
            if credential.token_type is TokenType.INDIVIDUAL and len(credential.voter_ids) != 1:
                return Rejected(
                    error=CredentialError.MALFORMED_CREDENTIAL,
                    detail="Invalid individual token format",
                )
            if expired:
                return Rejected(error=CredentialError.EXPIRED)
            if credential.used:
                return Rejected(error=CredentialError.DEACTIVATED)
        elif isinstance(credential, SelfEncodedToken):
            if expired:
                return Rejected(error=CredentialError.EXPIRED)
            if self.db.is_consumed(credential.id):
                return Rejected(error=CredentialError.DEACTIVATED)
        elif isinstance(credential, UnifiedLink | ParticularLink):
            if not credential.active:
                return Rejected(error=CredentialError.DEACTIVATED)
            if expired:
                return Rejected(error=CredentialError.EXPIRED)
        else:
            assert_never(credential)

        resolved = self._resolve_voter_id(credential, bearer_secret)
        if isinstance(resolved, Rejected):
            return resolved

        voter = self.db.voter(resolved)
        if voter is None:
            return Rejected(error=CredentialError.VOTER_NOT_FOUND)

        if isinstance(credential, SelfEncodedToken):
            if phone_matcher.digits_only(voter.phone) != phone_matcher.digits_only(
                credential.phone
            ):
                return Rejected(
                    error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL,
                    detail="Invalid voting link for this voter",
                )
        if isinstance(credential, UnifiedLink) and credential.selected_voter_phones:
            if not phone_matcher.matches_any(voter.phone, credential.selected_voter_phones):
                return Rejected(error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL)

        return self._authorize(credential, voter)

    def _resolve_voter_id(
        self, credential: Credential, bearer_secret: str | None
    ) -> str | Rejected:
        if isinstance(credential, SelfEncodedToken):
            return credential.voter_id

        if isinstance(credential, LegacyToken):
            if credential.token_type is TokenType.INDIVIDUAL:
                return credential.voter_ids[0]
            if not phone_matcher.digits_only(bearer_secret):
                return Rejected(
                    error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL,
                    detail="Phone number is required for group voting links",
                )
            voter_id = self.db.find_voter_id_by_phone(bearer_secret or "")
            if voter_id is None:
                return Rejected(error=CredentialError.VOTER_NOT_FOUND)
            if voter_id not in credential.voter_ids:
                return Rejected(error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL)
            return voter_id

        if isinstance(credential, UnifiedLink):
            if not phone_matcher.digits_only(bearer_secret):
                return Rejected(
                    error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL,
                    detail="Phone number is required for this voting link",
                )
            if credential.selected_voter_phones and not phone_matcher.matches_any(
                bearer_secret, credential.selected_voter_phones
            ):
                return Rejected(error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL)
            voter_id = self.db.find_voter_id_by_phone(bearer_secret or "")
            if voter_id is None:
                return Rejected(error=CredentialError.VOTER_NOT_FOUND)
            return voter_id

        if isinstance(credential, ParticularLink):
            if not bearer_secret:
                return Rejected(
                    error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL,
                    detail="Personal token is required for this voting link",
                )
            for entry in credential.voter_entries:
                if hmac.compare_digest(
                    entry.personal_token.encode("utf-8"), bearer_secret.encode("utf-8")
                ):
                    return entry.voter_id
            return Rejected(
                error=CredentialError.NOT_AUTHORIZED_FOR_CREDENTIAL,
                detail="Invalid personal token",
            )

        assert_never(credential)

    def _authorize(self, credential: Credential, voter: Voter) -> ValidationOutcome:
        if not voter.active:
            return Rejected(error=CredentialError.VOTER_SUSPENDED)
        if voter.has_voted:
            return Rejected(error=CredentialError.ALREADY_VOTED)

        kind = CredentialKind(credential.kind)
        token_type = _token_type(credential)
        if token_type is not TokenType.INDIVIDUAL and self.db.has_used(
            credential_path(kind, credential.id), voter.id
        ):
            return Rejected(error=CredentialError.ALREADY_VOTED)

        category = self.db.category(credential.category_id)
        if category is None:
            return Rejected(error=CredentialError.CATEGORY_NOT_FOUND)

        context = AuthorizationContext(
            voter_id=voter.id,
            voter_username=voter.username,
            category_id=category.id,
            category_name=category.name,
            credential_id=credential.id,
            credential_kind=kind,
            token_type=token_type,
            expires_at=credential.expires_at,
            candidates=self.db.active_candidates(category.id),
        )
        logger.info(
            "Validated %s credential %s for voter %s",
            kind.value,
            credential.id,
            voter.id,
        )
        return Authorized(context=context)


def _token_type(credential: Credential) -> TokenType | None:
    """Return whether a credential is single-use or shared among voters."""
    if isinstance(credential, LegacyToken):
        return credential.token_type
    if isinstance(credential, SelfEncodedToken):
        return TokenType.INDIVIDUAL
    if isinstance(credential, UnifiedLink | ParticularLink):
        return None
    assert_never(credential)
