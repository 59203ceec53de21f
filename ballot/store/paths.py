"""Store path layout."""

from __future__ import annotations

import re

VOTERS = "voters"
VOTERS_BY_PHONE = "voters-by-phone"
CATEGORIES = "categories"
CANDIDATES = "candidates"
VOTES = "votes"
TOKENS = "tokens"
TOKENS_CONSUMED = "tokens-consumed"
VOTING_LINKS = "voting-links"

# Characters never allowed in a key segment; '/' separates segments.
_FORBIDDEN = re.compile(r"[/.#$\[\]\s]")


def is_valid_key(key: str) -> bool:
    """Return True when ``key`` can be used as one path segment."""
    return bool(key) and len(key) <= 768 and not _FORBIDDEN.search(key)


def segment(key: str) -> str:
    """Validate and return one path segment."""
    if not is_valid_key(key):
        raise ValueError(f"Invalid store key: {key!r}")
    return key


def join(*parts: str) -> str:
    return "/".join(parts)


def voter(voter_id: str) -> str:
    return join(VOTERS, segment(voter_id))


def voter_by_phone(phone_key: str) -> str:
    return join(VOTERS_BY_PHONE, segment(phone_key))


def category(category_id: str) -> str:
    return join(CATEGORIES, segment(category_id))


def candidate(candidate_id: str) -> str:
    return join(CANDIDATES, segment(candidate_id))


def candidate_votes(candidate_id: str) -> str:
    return join(candidate(candidate_id), "votes")


def vote_key(voter_id: str, credential_id: str) -> str:
    """Deterministic vote key so a retried write lands on the same path."""
    return f"{segment(voter_id)}_{segment(credential_id)}"


def vote(voter_id: str, credential_id: str) -> str:
    return join(VOTES, vote_key(voter_id, credential_id))


def token(token_id: str) -> str:
    return join(TOKENS, segment(token_id))


def token_consumed(digest: str) -> str:
    return join(TOKENS_CONSUMED, segment(digest))


def voting_link(link_id: str) -> str:
    return join(VOTING_LINKS, segment(link_id))


def used_by(credential_path: str, voter_id: str) -> str:
    return join(credential_path, "used_by", segment(voter_id))
