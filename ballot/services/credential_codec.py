"""Self-encoded token codec.

A self-encoded token is a base64 rendering of a JSON payload. Without a
signing key configured the payload is trusted as-is; with one, new tokens
carry an HMAC-SHA256 ``sig`` over the canonical payload.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from typing import Any

from ballot.config import settings
from ballot.utils.time import now_ms

SIGNATURE_FIELD = "sig"


def canonical_json(payload: dict[str, Any]) -> str:
    """Serialize a payload deterministically (sorted keys, no whitespace)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def sign(payload: dict[str, Any], key: str) -> str:
    """Return the hex HMAC of ``payload`` without its signature field."""
    unsigned = {k: v for k, v in payload.items() if k != SIGNATURE_FIELD}
    return hmac.new(
        key.encode("utf-8"),
        canonical_json(unsigned).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def encode(data: dict[str, Any], signing_key: str | None = None) -> str:
    """Stamp ``data`` with a nonce and issue time and encode it URL-safely."""
    key = settings.self_encoded_signing_key if signing_key is None else signing_key
    payload = {
        **data,
        "issued_at": now_ms(),
        "nonce": secrets.token_hex(8),
    }
    if key:
        payload[SIGNATURE_FIELD] = sign(payload, key)
    raw = canonical_json(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode(reference: str) -> dict[str, Any] | None:
    """Decode a reference into its payload, or ``None`` if it is not one.

    Both the URL-safe and the standard alphabet are accepted, with or without
    padding.
    """
    if not reference:
        return None
    text = reference.strip().replace("+", "-").replace("/", "_")
    text += "=" * (-len(text) % 4)
    try:
        raw = base64.urlsafe_b64decode(text.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def token_type_of(payload: dict[str, Any]) -> str | None:
    """Return the embedded token type under either field spelling."""
    value = payload.get("token_type", payload.get("tokenType"))
    return str(value) if value is not None else None


def signature_ok(
    payload: dict[str, Any],
    signing_key: str | None = None,
    accept_unsigned: bool | None = None,
) -> bool:
    """Check the payload signature against the configured key."""
    key = settings.self_encoded_signing_key if signing_key is None else signing_key
    allow_unsigned = (
        settings.accept_unsigned_self_encoded if accept_unsigned is None else accept_unsigned
    )
    if not key:
        return True
    signature = payload.get(SIGNATURE_FIELD)
    if not signature:
        return allow_unsigned
    return hmac.compare_digest(str(signature), sign(payload, key))


def credential_id(payload: dict[str, Any]) -> str:
    """Stable id for a decoded payload, independent of base64 alphabet."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()[:40]
