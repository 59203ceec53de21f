"""Credential shapes accepted by the validator.

``Credential`` is a closed union discriminated on ``kind``; code that branches
on it ends in ``assert_never`` so a new shape must be handled everywhere.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, Field


class CredentialKind(str, Enum):
    """Stable names of the credential shapes."""

    LEGACY_TOKEN = "legacy_token"
    SELF_ENCODED = "self_encoded"
    UNIFIED_LINK = "unified_link"
    PARTICULAR_LINK = "particular_link"


class TokenType(str, Enum):
    """Legacy token audience."""

    INDIVIDUAL = "individual"
    COLLECTIVE = "collective"


class LegacyToken(BaseModel):
    """Store-resident token at ``tokens/{id}``.

    Field aliases accept records written by the earlier web client.
    """

    kind: Literal["legacy_token"] = "legacy_token"
    id: str
    voter_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("voter_ids", "voterIds"),
    )
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    category_name: str = Field(
        default="",
        validation_alias=AliasChoices("category_name", "categoryName"),
    )
    token_type: TokenType = Field(validation_alias=AliasChoices("token_type", "tokenType"))
    created_at: int = Field(default=0, validation_alias=AliasChoices("created_at", "createdAt"))
    expires_at: int = Field(validation_alias=AliasChoices("expires_at", "expiresAt"))
    used: bool = False
    used_at: int | None = Field(
        default=None,
        validation_alias=AliasChoices("used_at", "usedAt"),
    )
    created_by: str | None = Field(
        default=None,
        validation_alias=AliasChoices("created_by", "createdBy"),
    )


class SelfEncodedToken(BaseModel):
    """Individually-addressed token whose data travels inside the reference.

    Field aliases accept payloads minted by the earlier web client.
    """

    kind: Literal["self_encoded"] = "self_encoded"
    id: str = ""
    voter_id: str = Field(validation_alias=AliasChoices("voter_id", "voterId"))
    phone: str = Field(
        default="",
        validation_alias=AliasChoices("phone", "phoneNumber"),
    )
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    expires_at: int = Field(validation_alias=AliasChoices("expires_at", "expiresAt"))
    token_type: Literal["individual"] = Field(
        default="individual",
        validation_alias=AliasChoices("token_type", "tokenType"),
    )
    nonce: str = ""
    issued_at: int = Field(
        default=0,
        validation_alias=AliasChoices("issued_at", "timestamp"),
    )
    sig: str | None = None


class UnifiedLink(BaseModel):
    """Shared link at ``voting-links/{id}``; bearers identify by phone."""

    kind: Literal["unified_link"] = "unified_link"
    id: str
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    category_name: str = Field(
        default="",
        validation_alias=AliasChoices("category_name", "categoryName"),
    )
    active: bool = True
    created_at: int = Field(default=0, validation_alias=AliasChoices("created_at", "createdAt"))
    expires_at: int = Field(validation_alias=AliasChoices("expires_at", "expiresAt"))
    selected_voter_phones: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selected_voter_phones", "selectedVoterPhones"),
    )
    created_by: str | None = Field(
        default=None,
        validation_alias=AliasChoices("created_by", "createdBy"),
    )


class VoterEntry(BaseModel):
    """One bearer of a particular link."""

    voter_id: str = Field(validation_alias=AliasChoices("voter_id", "voterId", "id"))
    username: str = ""
    phone: str = Field(default="", validation_alias=AliasChoices("phone", "phoneNumber"))
    personal_token: str = Field(
        validation_alias=AliasChoices("personal_token", "personalToken"),
    )


class ParticularLink(BaseModel):
    """Shared link at ``voting-links/{id}``; bearers present a personal token."""

    kind: Literal["particular_link"] = "particular_link"
    id: str
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    category_name: str = Field(
        default="",
        validation_alias=AliasChoices("category_name", "categoryName"),
    )
    active: bool = True
    created_at: int = Field(default=0, validation_alias=AliasChoices("created_at", "createdAt"))
    expires_at: int = Field(validation_alias=AliasChoices("expires_at", "expiresAt"))
    voter_entries: list[VoterEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("voter_entries", "voterData"),
    )
    created_by: str | None = Field(
        default=None,
        validation_alias=AliasChoices("created_by", "createdBy"),
    )


Credential = Annotated[
    LegacyToken | SelfEncodedToken | UnifiedLink | ParticularLink,
    Field(discriminator="kind"),
]

StoredCredential = Annotated[
    LegacyToken | UnifiedLink | ParticularLink,
    Field(discriminator="kind"),
]
