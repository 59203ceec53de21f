"""Phone variant expansion and matching tests."""

from __future__ import annotations

import pytest

from ballot.services.phone_matcher import (
    digits_only,
    expand_variants,
    index_keys,
    matches_any,
    phones_match,
)


def test_expand_variants_covers_local_national_and_international_forms() -> None:
    """A local number expands into every rendering for the country."""
    variants = expand_variants(" 0300-1234567 ")
    assert "0300-1234567" in variants
    assert {"03001234567", "3001234567", "923001234567", "+923001234567"} <= variants


def test_expand_variants_from_international_input() -> None:
    """An international number expands back to the local trunk form."""
    variants = expand_variants("+92 300 1234567")
    assert {"923001234567", "3001234567", "03001234567"} <= variants


@pytest.mark.parametrize("raw", ["", "   ", "abc", "+-()", None])
def test_digit_free_input_expands_to_nothing(raw: str | None) -> None:
    """Empty input never produces variants (and so never matches)."""
    assert expand_variants(raw) == set()
    assert index_keys(raw) == []
    assert not phones_match(raw, "03001234567")


@pytest.mark.parametrize(
    "bearer",
    ["+923001234567", "923001234567", "3001234567", "03001234567", "0092 300 1234567"],
)
def test_registered_local_number_matches_every_bearer_form(bearer: str) -> None:
    """Inconsistently typed numbers resolve to the same registration."""
    assert phones_match(bearer, "03001234567")


def test_stored_international_number_matches_local_bearer() -> None:
    """Matching also expands the stored side."""
    assert phones_match("03337654321", "+92 333 7654321")


@pytest.mark.parametrize("bearer", ["03001234568", "3001234", "13001234567"])
def test_different_numbers_do_not_match(bearer: str) -> None:
    """A different subscriber number is rejected."""
    assert not phones_match(bearer, "03001234567")


def test_index_keys_start_with_literal_digits() -> None:
    """The literal digits are probed first, then the other forms."""
    keys = index_keys("+92 300 1234567")
    assert keys[0] == "923001234567"
    assert "03001234567" in keys
    assert all(key == digits_only(key) for key in keys)


def test_matches_any_selected_phone() -> None:
    """Membership checks run over a list of stored phones."""
    assert matches_any("+923001234567", ["03110000000", "0300 1234567"])
    assert not matches_any("+923001234567", [])
