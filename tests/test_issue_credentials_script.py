"""Command-line issuing and scheduled purge tests."""

from __future__ import annotations

import asyncio

import pytest

import ballot.store
from ballot.jobs import purge_expired as purge_job
from ballot.store import MemoryStore
from scripts.issue_credentials import issue, parse_args, print_lines


def test_parse_args_collects_repeated_voters() -> None:
    """Every --voter flag adds one voter id."""
    args = parse_args(["particular", "president", "--voter", "amir", "--voter", "zara"])
    assert args.kind == "particular"
    assert args.voter_ids == ["amir", "zara"]
    assert args.ttl == 1800


def test_parse_args_rejects_unknown_kind() -> None:
    """Only the four credential shapes are accepted."""
    with pytest.raises(SystemExit):
        parse_args(["bulk", "president"])


def test_issue_prints_one_line_per_voter(
    monkeypatch: pytest.MonkeyPatch, store: MemoryStore
) -> None:
    """Particular links print one URL per voter."""
    monkeypatch.setattr(ballot.store, "get_store", lambda: store)

    lines, expires_at = issue("particular", "president", ["amir", "zara"], 600, "cli")

    assert len(lines) == 2
    assert lines[0].startswith("Amir (03001234567): ")
    assert "/cast-vote/particular/pl" in lines[0]
    assert expires_at > 0


def test_issue_collective_token(monkeypatch: pytest.MonkeyPatch, store: MemoryStore) -> None:
    """A collective token is one URL shared by every listed voter."""
    monkeypatch.setattr(ballot.store, "get_store", lambda: store)

    [line], _ = issue("collective", "president", ["amir", "zara"], 600, "cli")
    assert line.startswith("amir, zara: ")
    assert "/cast-vote/tk" in line


def test_purge_job_uses_configured_retention(
    monkeypatch: pytest.MonkeyPatch, store: MemoryStore
) -> None:
    """The scheduled job removes long-expired credentials."""
    store.set(
        "voting-links/ulold",
        {"kind": "unified_link", "category_id": "president", "expires_at": 1},
    )
    monkeypatch.setattr(purge_job, "get_store", lambda: store)

    asyncio.run(purge_job.purge_expired_credentials())

    assert not store.get("voting-links/ulold").exists
    assert store.get("voters/amir").exists


def test_print_lines_shows_expiry(capsys: pytest.CaptureFixture[str]) -> None:
    """Output starts with the expiry, then one line per credential."""
    print_lines(["amir: https://example.test/cast-vote/x"], 1_767_225_600_000)

    output = capsys.readouterr().out.splitlines()
    assert output[0] == "Issued 1 credential URL(s), expiring 2026-01-01T00:00:00+00:00:"
    assert output[1] == "(Expired)"
    assert output[2] == "amir: https://example.test/cast-vote/x"
