"""Credential issuance schemas."""

from pydantic import BaseModel, Field

from ballot.schemas.credentials import TokenType


class UnifiedLinkCreate(BaseModel):
    """Request body for issuing a unified link."""

    category_id: str = Field(..., min_length=1)
    ttl_seconds: int = Field(..., gt=0)
    voter_ids: list[str] | None = None


class ParticularLinksCreate(BaseModel):
    """Request body for issuing particular links."""

    category_id: str = Field(..., min_length=1)
    ttl_seconds: int = Field(..., gt=0)
    voter_ids: list[str] = Field(..., min_length=1)


class LegacyTokenCreate(BaseModel):
    """Request body for issuing legacy tokens."""

    category_id: str = Field(..., min_length=1)
    ttl_seconds: int = Field(..., gt=0)
    voter_ids: list[str] = Field(..., min_length=1)
    token_type: TokenType = TokenType.INDIVIDUAL


class ParticularLinkUrl(BaseModel):
    """Bearer URL for one voter of a particular link."""

    voter_id: str
    username: str = ""
    phone: str = ""
    url: str
