"""Validation and casting schemas."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ballot.schemas.credentials import CredentialKind, TokenType
from ballot.schemas.records import Candidate, Vote


class CredentialError(str, Enum):
    """Every way validating a credential or casting a vote can fail."""

    NOT_FOUND = "NOT_FOUND"
    WRONG_CREDENTIAL_KIND = "WRONG_CREDENTIAL_KIND"
    DEACTIVATED = "DEACTIVATED"
    EXPIRED = "EXPIRED"
    VOTER_NOT_FOUND = "VOTER_NOT_FOUND"
    NOT_AUTHORIZED_FOR_CREDENTIAL = "NOT_AUTHORIZED_FOR_CREDENTIAL"
    VOTER_SUSPENDED = "VOTER_SUSPENDED"
    ALREADY_VOTED = "ALREADY_VOTED"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    CANDIDATE_NOT_FOUND = "CANDIDATE_NOT_FOUND"
    CANDIDATE_INACTIVE = "CANDIDATE_INACTIVE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    MALFORMED_CREDENTIAL = "MALFORMED_CREDENTIAL"


class AuthorizationContext(BaseModel):
    """Validated capability to cast one vote."""

    model_config = ConfigDict(frozen=True)

    voter_id: str
    voter_username: str = ""
    category_id: str
    category_name: str = ""
    credential_id: str
    credential_kind: CredentialKind
    token_type: TokenType | None = None
    expires_at: int
    candidates: list[Candidate] = Field(default_factory=list)


class Authorized(BaseModel):
    """Successful validation."""

    ok: Literal[True] = True
    context: AuthorizationContext


class Rejected(BaseModel):
    """Failed validation or cast."""

    ok: Literal[False] = False
    error: CredentialError
    detail: str = ""


class Cast(BaseModel):
    """Successful vote cast."""

    ok: Literal[True] = True
    vote: Vote


ValidationOutcome = Authorized | Rejected
CastOutcome = Cast | Rejected


class ValidateRequest(BaseModel):
    """Request body for validating a credential."""

    credential: str = Field(..., min_length=1, max_length=4096)
    bearer_secret: str | None = Field(default=None, max_length=256)


class CastRequest(ValidateRequest):
    """Request body for casting a vote with a credential."""

    candidate_id: str = Field(..., min_length=1)


class LinkValidateRequest(BaseModel):
    """Request body for the link-specific validation endpoints."""

    bearer_secret: str = Field(..., min_length=1, max_length=256)


class LinkCastRequest(LinkValidateRequest):
    """Request body for casting through a link-specific endpoint."""

    candidate_id: str = Field(..., min_length=1)


class ContextResponse(BaseModel):
    """Authorization context returned to the ballot screen."""

    context: AuthorizationContext


class VoteResponse(BaseModel):
    """Recorded vote."""

    vote: Vote
