"""Loose phone-number matching for one configured numbering plan.

Phones are registered in whatever format the operator typed, and bearers type
theirs the same way, so both sides are expanded into every local, national
and international rendering and compared digit-for-digit.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ballot.config import settings

_NON_DIGITS = re.compile(r"\D")
_INTERNATIONAL_PREFIX = "00"


def digits_only(raw: str | None) -> str:
    """Strip everything but ASCII digits."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", raw)


def national_numbers(
    digits: str,
    country_code: str | None = None,
    trunk_prefix: str | None = None,
) -> set[str]:
    """Return the plausible national significant numbers for ``digits``."""
    cc = settings.phone_country_code if country_code is None else country_code
    trunk = settings.phone_trunk_prefix if trunk_prefix is None else trunk_prefix
    if not digits:
        return set()

    bare = digits
    if bare.startswith(_INTERNATIONAL_PREFIX):
        bare = bare[len(_INTERNATIONAL_PREFIX):]

    candidates = {bare}
    if cc and bare.startswith(cc) and len(bare) > len(cc):
        candidates.add(bare[len(cc):])
    if trunk and bare.startswith(trunk) and len(bare) > len(trunk):
        candidates.add(bare[len(trunk):])
    return {value for value in candidates if value}


def expand_variants(
    raw: str | None,
    country_code: str | None = None,
    trunk_prefix: str | None = None,
) -> set[str]:
    """Expand bearer input into the representations a voter may be stored under.

    Empty or digit-free input expands to nothing, so it never matches.
    """
    cc = settings.phone_country_code if country_code is None else country_code
    trunk = settings.phone_trunk_prefix if trunk_prefix is None else trunk_prefix
    digits = digits_only(raw)
    if not digits:
        return set()

    variants = {str(raw).strip(), digits}
    if trunk:
        if digits.startswith(trunk):
            variants.add(digits[len(trunk):])
        else:
            variants.add(f"{trunk}{digits}")

    for national in national_numbers(digits, cc, trunk):
        variants.add(national)
        if trunk:
            variants.add(f"{trunk}{national}")
        if cc:
            variants.add(f"{cc}{national}")
            variants.add(f"+{cc}{national}")

    return {variant for variant in variants if variant}


def digit_variants(raw: str | None) -> set[str]:
    """Return the digits-only forms of every variant of ``raw``."""
    return {digits for digits in map(digits_only, expand_variants(raw)) if digits}


def index_keys(raw: str | None) -> list[str]:
    """Return phone-index keys to probe, most literal first."""
    digits = digits_only(raw)
    keys = sorted(digit_variants(raw) - {digits})
    return [digits, *keys] if digits else []


def phones_match(bearer: str | None, stored: str | None) -> bool:
    """Return True when any variant of ``bearer`` is digit-equal to ``stored``.

    ``stored`` is compared both as its own digits and through its expansion.
    """
    bearer_digits = digit_variants(bearer)
    if not bearer_digits:
        return False

    stored_digits = digits_only(stored)
    if not stored_digits:
        return False
    if stored_digits in bearer_digits:
        return True
    return bool(bearer_digits & digit_variants(stored))


def matches_any(bearer: str | None, stored_phones: Iterable[str]) -> bool:
    """Return True when ``bearer`` matches at least one of ``stored_phones``."""
    return any(phones_match(bearer, phone) for phone in stored_phones)
