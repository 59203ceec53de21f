"""Bearer-facing voting endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ballot.dependencies import get_store_dependency
from ballot.schemas.voting import (
    CastRequest,
    ContextResponse,
    LinkCastRequest,
    LinkValidateRequest,
    ValidateRequest,
    VoteResponse,
)
from ballot.services.voting_service import VotingService
from ballot.store import Store

router = APIRouter()


@router.post("/validate", response_model=ContextResponse)
def validate_credential(
    payload: ValidateRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Validate any credential and return the ballot it authorizes."""
    service = VotingService(store)
    context = service.authorize(payload.credential, payload.bearer_secret)
    return {"context": context}


@router.post("/cast", response_model=VoteResponse)
def cast_vote(
    payload: CastRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Cast one vote with any credential."""
    service = VotingService(store)
    vote = service.cast(payload.credential, payload.candidate_id, payload.bearer_secret)
    return {"vote": vote}


@router.post("/unified/{link_id}/validate", response_model=ContextResponse)
def validate_unified_link(
    link_id: str,
    payload: LinkValidateRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Validate a unified link with the bearer's phone number."""
    service = VotingService(store)
    context = service.authorize(link_id, payload.bearer_secret, link_kind="unified")
    return {"context": context}


@router.post("/unified/{link_id}/cast", response_model=VoteResponse)
def cast_unified_link(
    link_id: str,
    payload: LinkCastRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Cast a vote through a unified link."""
    service = VotingService(store)
    vote = service.cast(
        link_id, payload.candidate_id, payload.bearer_secret, link_kind="unified"
    )
    return {"vote": vote}


@router.post("/particular/{link_id}/validate", response_model=ContextResponse)
def validate_particular_link(
    link_id: str,
    payload: LinkValidateRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Validate a particular link with the bearer's personal token."""
    service = VotingService(store)
    context = service.authorize(link_id, payload.bearer_secret, link_kind="particular")
    return {"context": context}


@router.post("/particular/{link_id}/cast", response_model=VoteResponse)
def cast_particular_link(
    link_id: str,
    payload: LinkCastRequest,
    store: Store = Depends(get_store_dependency),
) -> dict:
    """Cast a vote through a particular link."""
    service = VotingService(store)
    vote = service.cast(
        link_id, payload.candidate_id, payload.bearer_secret, link_kind="particular"
    )
    return {"vote": vote}
