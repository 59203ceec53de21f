"""Operator endpoints for issuing and retiring credentials."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ballot.dependencies import OperatorSession, get_operator, get_store_dependency
from ballot.schemas.issuance import (
    LegacyTokenCreate,
    ParticularLinksCreate,
    ParticularLinkUrl,
    UnifiedLinkCreate,
)
from ballot.services.issuer_service import (
    CredentialIssuer,
    particular_link_url,
    unified_link_url,
)
from ballot.store import Store

router = APIRouter()


@router.post("/unified-links")
def create_unified_link(
    payload: UnifiedLinkCreate,
    operator: OperatorSession = Depends(get_operator),
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Issue one unified link for a category."""
    issuer = CredentialIssuer(store)
    link = issuer.issue_unified_link(
        category_id=payload.category_id,
        ttl_seconds=payload.ttl_seconds,
        voter_ids=payload.voter_ids,
        issued_by=operator.user_id,
    )
    return {"link": link, "url": unified_link_url(link.id)}


@router.post("/particular-links")
def create_particular_links(
    payload: ParticularLinksCreate,
    operator: OperatorSession = Depends(get_operator),
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Issue a particular link with one personal token per voter."""
    issuer = CredentialIssuer(store)
    link = issuer.issue_particular_links(
        voter_ids=payload.voter_ids,
        category_id=payload.category_id,
        ttl_seconds=payload.ttl_seconds,
        issued_by=operator.user_id,
    )
    urls = [
        ParticularLinkUrl(
            voter_id=entry.voter_id,
            username=entry.username,
            phone=entry.phone,
            url=particular_link_url(link.id, entry.personal_token),
        )
        for entry in link.voter_entries
    ]
    return {"link": link, "urls": urls}


@router.post("/tokens")
def create_tokens(
    payload: LegacyTokenCreate,
    operator: OperatorSession = Depends(get_operator),
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Issue individual (self-encoded) or collective tokens."""
    issuer = CredentialIssuer(store)
    tokens = issuer.issue_legacy_token(
        voter_ids=payload.voter_ids,
        category_id=payload.category_id,
        token_type=payload.token_type,
        ttl_seconds=payload.ttl_seconds,
        issued_by=operator.user_id,
    )
    return {"tokens": tokens}


@router.post("/{credential_id}/deactivate")
def deactivate_credential(
    credential_id: str,
    _: OperatorSession = Depends(get_operator),
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Deactivate a stored link or token."""
    issuer = CredentialIssuer(store)
    kind = issuer.deactivate(credential_id)
    return {"credential_id": credential_id, "kind": kind.value, "deactivated": True}
