"""Stored election records read and written by the credential engine."""

from pydantic import BaseModel, Field


class Voter(BaseModel):
    """Registered voter."""

    id: str
    username: str = ""
    phone: str = ""
    active: bool = True
    has_voted: bool = False
    voted_at: int | None = None


class Category(BaseModel):
    """Election category (the office being voted on)."""

    id: str
    name: str = ""
    active: bool = True


class Candidate(BaseModel):
    """Candidate standing in one category."""

    id: str
    name: str = ""
    category_id: str
    active: bool = True
    votes: int = Field(default=0, ge=0)


class Vote(BaseModel):
    """One recorded vote, keyed by ``{voter_id}_{credential_id}``."""

    voter_id: str
    candidate_id: str
    candidate_name: str = ""
    category_id: str
    category_name: str = ""
    credential_id: str
    credential_kind: str
    timestamp: int
