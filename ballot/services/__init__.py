"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "CredentialIssuer": "ballot.services.issuer_service",
    "CredentialValidator": "ballot.services.validator_service",
    "StoreService": "ballot.services.common",
    "VoteCaster": "ballot.services.cast_service",
    "VotingService": "ballot.services.voting_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
