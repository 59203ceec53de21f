"""Credential issuance, deactivation and housekeeping."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel

from ballot.config import settings
from ballot.schemas.credentials import (
    CredentialKind,
    LegacyToken,
    ParticularLink,
    TokenType,
    UnifiedLink,
    VoterEntry,
)
from ballot.schemas.records import Category, Voter
from ballot.services import credential_codec
from ballot.services.common import StoreService
from ballot.store import Store, merge_update, paths
from ballot.utils.errors import InvalidInputError, NotFoundError
from ballot.utils.time import expires_at_ms, now_ms, retention_cutoff_ms

logger = logging.getLogger(__name__)

ID_ATTEMPTS = 10


class IssuedToken(BaseModel):
    """A legacy token reference handed to one or more bearers."""

    reference: str
    token_type: TokenType
    voter_ids: list[str]
    category_id: str
    expires_at: int
    url: str


class CredentialIssuer:
    """Create and retire voting credentials."""

    def __init__(self, store: Store, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.db = StoreService(store)
        self.clock = clock

    def issue_unified_link(
        self,
        category_id: str,
        ttl_seconds: int,
        voter_ids: Iterable[str] | None = None,
        issued_by: str | None = None,
    ) -> UnifiedLink:
        """Create one shared link; optionally restrict it to some voters' phones."""
        self._check_ttl(ttl_seconds, settings.link_min_ttl_seconds, settings.link_max_ttl_seconds)
        category = self._category(category_id)

        selected_phones: list[str] = []
        requested = list(dict.fromkeys(voter_ids or []))
        if requested:
            voters = self._voters(requested)
            selected_phones = [voter.phone for voter in voters if voter.phone]
            if not selected_phones:
                raise InvalidInputError("None of the selected voters has a phone number")

        created_at = self.clock()
        link = self._create_with_fresh_id(
            "ul",
            paths.voting_link,
            lambda link_id: UnifiedLink(
                id=link_id,
                category_id=category.id,
                category_name=category.name,
                created_at=created_at,
                expires_at=expires_at_ms(ttl_seconds, created_at),
                selected_voter_phones=selected_phones,
                created_by=issued_by,
            ),
        )
        logger.info(
            "Issued unified link %s for category %s (%s selected phones)",
            link.id,
            category.id,
            len(selected_phones),
        )
        return link

    def issue_particular_links(
        self,
        voter_ids: Iterable[str],
        category_id: str,
        ttl_seconds: int,
        issued_by: str | None = None,
    ) -> ParticularLink:
        """Create one link carrying a personal token per voter."""
        self._check_ttl(ttl_seconds, settings.link_min_ttl_seconds, settings.link_max_ttl_seconds)
        requested = list(dict.fromkeys(voter_ids))
        if not requested:
            raise InvalidInputError("Select at least one voter")
        category = self._category(category_id)
        voters = self._voters(requested)

        minted: set[str] = set()
        entries: list[VoterEntry] = []
        for voter in voters:
            personal_token = self._personal_token(minted)
            entries.append(
                VoterEntry(
                    voter_id=voter.id,
                    username=voter.username,
                    phone=voter.phone,
                    personal_token=personal_token,
                )
            )

        created_at = self.clock()
        link = self._create_with_fresh_id(
            "pl",
            paths.voting_link,
            lambda link_id: ParticularLink(
                id=link_id,
                category_id=category.id,
                category_name=category.name,
                created_at=created_at,
                expires_at=expires_at_ms(ttl_seconds, created_at),
                voter_entries=entries,
                created_by=issued_by,
            ),
        )
        logger.info(
            "Issued particular link %s for %s voters in category %s",
            link.id,
            len(entries),
            category.id,
        )
        return link

    def issue_legacy_token(
        self,
        voter_ids: Iterable[str],
        category_id: str,
        token_type: TokenType,
        ttl_seconds: int,
        issued_by: str | None = None,
    ) -> list[IssuedToken]:
        """Create legacy tokens.

        Individual tokens are self-encoded, one per voter, and never stored.
        A collective token is one stored record shared by every listed voter.
        """
        self._check_ttl(
            ttl_seconds, settings.token_min_ttl_seconds, settings.token_max_ttl_seconds
        )
        requested = list(dict.fromkeys(voter_ids))
        if not requested:
            raise InvalidInputError("Select at least one voter")
        category = self._category(category_id)
        voters = self._voters(requested)

        created_at = self.clock()
        expires_at = expires_at_ms(ttl_seconds, created_at)

        if token_type is TokenType.INDIVIDUAL:
            issued = []
            for voter in voters:
                reference = credential_codec.encode(
                    {
                        "voter_id": voter.id,
                        "phone": voter.phone,
                        "category_id": category.id,
                        "token_type": TokenType.INDIVIDUAL.value,
                        "expires_at": expires_at,
                    }
                )
                issued.append(
                    IssuedToken(
                        reference=reference,
                        token_type=token_type,
                        voter_ids=[voter.id],
                        category_id=category.id,
                        expires_at=expires_at,
                        url=token_url(reference),
                    )
                )
            logger.info(
                "Issued %s self-encoded tokens for category %s", len(issued), category.id
            )
            return issued

        token = self._create_with_fresh_id(
            "tk",
            paths.token,
            lambda token_id: LegacyToken(
                id=token_id,
                voter_ids=[voter.id for voter in voters],
                category_id=category.id,
                category_name=category.name,
                token_type=TokenType.COLLECTIVE,
                created_at=created_at,
                expires_at=expires_at,
                created_by=issued_by,
            ),
        )
        logger.info(
            "Issued collective token %s for %s voters in category %s",
            token.id,
            len(token.voter_ids),
            category.id,
        )
        return [
            IssuedToken(
                reference=token.id,
                token_type=token.token_type,
                voter_ids=token.voter_ids,
                category_id=category.id,
                expires_at=expires_at,
                url=token_url(token.id),
            )
        ]

    def deactivate(self, credential_id: str) -> CredentialKind:
        """Retire a stored credential so it validates as ``DEACTIVATED``."""
        credential = self.db.stored_credential(credential_id)
        if credential is None:
            raise NotFoundError("Credential")

        if isinstance(credential, LegacyToken):
            merge_update(
                self.store,
                paths.token(credential.id),
                {"used": True, "used_at": self.clock()},
            )
        else:
            merge_update(self.store, paths.voting_link(credential.id), {"active": False})
        logger.info("Deactivated %s %s", credential.kind, credential.id)
        return CredentialKind(credential.kind)

    def purge_expired(self, retention_days: int | None = None) -> int:
        """Delete credentials that expired more than ``retention_days`` ago."""
        days = retention_days
        if days is None:
            days = settings.credential_purge_retention_days
        cutoff = retention_cutoff_ms(days, self.clock())
        removed = 0
        for prefix in (paths.TOKENS, paths.VOTING_LINKS, paths.TOKENS_CONSUMED):
            for key, value in self.store.children(prefix).items():
                if not isinstance(value, dict):
                    continue
                expires_at = value.get("expires_at", value.get("expiresAt"))
                if expires_at is None or int(expires_at) >= cutoff:
                    continue
                self.store.delete(paths.join(prefix, key))
                removed += 1
        return removed

    def _category(self, category_id: str) -> Category:
        category = self.db.category(category_id)
        if category is None:
            raise NotFoundError("Category")
        return category

    def _voters(self, voter_ids: list[str]) -> list[Voter]:
        voters: list[Voter] = []
        for voter_id in voter_ids:
            voter = self.db.voter(voter_id)
            if voter is None:
                logger.warning("Skipping unknown voter %s", voter_id)
                continue
            voters.append(voter)
        if not voters:
            raise InvalidInputError("None of the selected voters exist")
        return voters

    @staticmethod
    def _check_ttl(ttl_seconds: int, minimum: int, maximum: int) -> None:
        if ttl_seconds < minimum or ttl_seconds > maximum:
            raise InvalidInputError(
                f"Duration must be between {minimum} and {maximum} seconds"
            )

    @staticmethod
    def _personal_token(minted: set[str]) -> str:
        while True:
            token = secrets.token_urlsafe(settings.personal_token_bytes)
            if token not in minted:
                minted.add(token)
                return token

    def _create_with_fresh_id(
        self,
        prefix: str,
        path_for: Callable[[str], str],
        build: Callable[[str], Any],
    ):
        for _attempt in range(ID_ATTEMPTS):
            credential_id = f"{prefix}{secrets.token_hex(10)}"
            credential = build(credential_id)
            if self.store.create(path_for(credential_id), credential.model_dump(mode="json")):
                return credential
        raise InvalidInputError(f"Failed to allocate a unique id after {ID_ATTEMPTS} attempts")


def unified_link_url(link_id: str) -> str:
    """Return the bearer URL of a unified link."""
    return f"{settings.public_base_url.rstrip('/')}/cast-vote/unified/{link_id}"


def particular_link_url(link_id: str, personal_token: str) -> str:
    """Return the bearer URL of one particular-link entry."""
    base = settings.public_base_url.rstrip("/")
    return f"{base}/cast-vote/particular/{link_id}?token={personal_token}"


def token_url(reference: str) -> str:
    """Return the bearer URL of a legacy or self-encoded token."""
    return f"{settings.public_base_url.rstrip('/')}/cast-vote/{reference}"
