"""Supabase store adapter tests against a mocked PostgREST client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, call

import httpx
import pytest
from postgrest import APIError

from ballot.config import settings
from ballot.store.supabase_store import SupabaseStore, is_unique_violation, like_escape
from ballot.utils.errors import StoreUnavailableError


def _client(data=None, error: Exception | None = None) -> tuple[MagicMock, MagicMock]:
    """Return a client whose query builder chains to itself."""
    builder = MagicMock()
    for method in (
        "select",
        "eq",
        "limit",
        "upsert",
        "insert",
        "update",
        "delete",
        "like",
        "order",
        "range",
    ):
        getattr(builder, method).return_value = builder
    if error is not None:
        builder.execute.side_effect = error
    else:
        builder.execute.return_value = SimpleNamespace(data=data)

    client = MagicMock()
    client.table.return_value = builder
    return client, builder


def test_get_returns_value_and_version() -> None:
    """Rows map to snapshots; no row means a missing path."""
    client, builder = _client(data=[{"value": {"name": "Alice"}, "version": 4}])
    snapshot = SupabaseStore(client, table="kv_nodes").get("candidates/alice")

    assert snapshot.exists
    assert snapshot.value == {"name": "Alice"}
    assert snapshot.version == 4
    client.table.assert_called_with("kv_nodes")
    builder.eq.assert_called_with("path", "candidates/alice")

    client, _ = _client(data=[])
    assert not SupabaseStore(client).get("candidates/nobody").exists


def test_compare_and_set_filters_on_version() -> None:
    """An update touching no row is a lost swap."""
    client, builder = _client(data=[{"path": "voters/a"}])
    store = SupabaseStore(client, table="kv_nodes")
    assert store.compare_and_set("voters/a", {"has_voted": True}, 3)
    builder.update.assert_called_with({"value": {"has_voted": True}})
    builder.eq.assert_any_call("version", 3)

    client, _ = _client(data=[])
    assert not SupabaseStore(client).compare_and_set("voters/a", {"has_voted": True}, 3)


def test_create_reports_existing_path() -> None:
    """Unique violations mean the path is taken."""
    duplicate = APIError(
        {"message": "duplicate key value violates unique constraint", "code": "23505"}
    )
    assert is_unique_violation(duplicate)

    client, _ = _client(error=duplicate)
    assert not SupabaseStore(client).create("voting-links/ul1", {"active": True})

    client, _ = _client(data=[{"path": "voting-links/ul1"}])
    assert SupabaseStore(client).create("voting-links/ul1", {"active": True})


@pytest.mark.parametrize(
    "error",
    [
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("refused"),
        APIError({"message": "permission denied", "code": "42501"}),
    ],
)
def test_failures_become_store_unavailable(error: Exception) -> None:
    """Transport and server failures surface as StoreUnavailableError."""
    client, _ = _client(error=error)
    with pytest.raises(StoreUnavailableError):
        SupabaseStore(client).get("voters/a")


def test_increment_calls_rpc() -> None:
    """Counters are bumped by the database function."""
    client = MagicMock()
    client.rpc.return_value.execute.return_value = SimpleNamespace(data=7)

    assert SupabaseStore(client).increment("candidates/alice/votes") == 7
    client.rpc.assert_called_once_with(
        "kv_increment", {"p_path": "candidates/alice/votes", "p_amount": 1}
    )


def test_commit_vote_calls_rpc() -> None:
    """The claim, the vote and the tally go to the database in one call."""
    client = MagicMock()
    client.rpc.return_value.execute.return_value = SimpleNamespace(data=True)

    assert SupabaseStore(client).commit_vote(
        "voters/amir", {"has_voted": True}, 2, "votes/amir_ul1", {"c": 1}, "candidates/a/votes"
    )
    client.rpc.assert_called_once_with(
        "kv_cast_vote",
        {
            "p_voter_path": "voters/amir",
            "p_voter_value": {"has_voted": True},
            "p_expected_version": 2,
            "p_vote_path": "votes/amir_ul1",
            "p_vote_value": {"c": 1},
            "p_tally_path": "candidates/a/votes",
        },
    )

    client.rpc.return_value.execute.return_value = SimpleNamespace(data=False)
    assert not SupabaseStore(client).commit_vote(
        "voters/amir", {"has_voted": True}, 2, "votes/amir_ul1", {"c": 1}, "candidates/a/votes"
    )


def test_children_filters_on_parent_and_pages(monkeypatch: pytest.MonkeyPatch) -> None:
    """Direct children are selected by parent and read page by page."""
    monkeypatch.setattr(settings, "store_page_size", 2)
    client, builder = _client()
    builder.execute.side_effect = [
        SimpleNamespace(
            data=[
                {"path": "voting-links/ul1", "value": {"active": True}},
                {"path": "voting-links/ul2", "value": {"active": False}},
            ]
        ),
        SimpleNamespace(data=[{"path": "voting-links/ul3", "value": {"active": True}}]),
    ]

    children = SupabaseStore(client).children("voting-links")

    assert children == {
        "ul1": {"active": True},
        "ul2": {"active": False},
        "ul3": {"active": True},
    }
    builder.eq.assert_called_with("parent", "voting-links")
    builder.order.assert_called_with("path")
    assert builder.range.call_args_list == [call(0, 1), call(2, 3)]
    builder.like.assert_not_called()


def test_children_stops_on_empty_page(monkeypatch: pytest.MonkeyPatch) -> None:
    """A full last page is followed by one empty read."""
    monkeypatch.setattr(settings, "store_page_size", 1)
    client, builder = _client()
    builder.execute.side_effect = [
        SimpleNamespace(data=[{"path": "voters/amir", "value": {"name": "Amir"}}]),
        SimpleNamespace(data=[]),
    ]

    assert SupabaseStore(client).children("voters") == {"amir": {"name": "Amir"}}
    assert builder.execute.call_count == 2


def test_delete_removes_descendants() -> None:
    """Deleting a path also deletes everything below it."""
    client, builder = _client(data=[])
    SupabaseStore(client).delete("voting-links/ul1")
    builder.eq.assert_called_with("path", "voting-links/ul1")
    builder.like.assert_called_with("path", "voting-links/ul1/%")


def test_delete_escapes_like_wildcards() -> None:
    """Underscores in ids do not match sibling subtrees."""
    client, builder = _client(data=[])
    SupabaseStore(client).delete("voting-links/-Nx_a1")
    builder.like.assert_called_with("path", "voting-links/-Nx\\_a1/%")
    assert like_escape("50%_off\\") == "50\\%\\_off\\\\"
