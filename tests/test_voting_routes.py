"""End-to-end HTTP tests for issuing credentials and casting votes."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from ballot.store import MemoryStore


def _issue_unified(client: TestClient, **extra) -> str:
    response = client.post(
        "/credentials/unified-links",
        json={"category_id": "president", "ttl_seconds": 600, **extra},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["url"].endswith(f"/cast-vote/unified/{body['link']['id']}")
    return body["link"]["id"]


def test_unified_link_flow(client: TestClient, store: MemoryStore) -> None:
    """Validate, cast, then fail with ALREADY_VOTED on the second attempt."""
    link_id = _issue_unified(client)

    validated = client.post(
        f"/voting/unified/{link_id}/validate", json={"bearer_secret": "+923001234567"}
    )
    assert validated.status_code == 200
    context = validated.json()["context"]
    assert context["voter_id"] == "amir"
    assert [candidate["id"] for candidate in context["candidates"]] == ["alice"]

    cast = client.post(
        f"/voting/unified/{link_id}/cast",
        json={"bearer_secret": "03001234567", "candidate_id": "alice"},
    )
    assert cast.status_code == 200
    assert cast.json()["vote"]["candidate_id"] == "alice"
    assert store.get("candidates/alice/votes").value == 1

    again = client.post(
        f"/voting/unified/{link_id}/cast",
        json={"bearer_secret": "03001234567", "candidate_id": "alice"},
    )
    assert again.status_code == 409
    assert again.json() == {
        "error": "You have already cast your vote.",
        "code": "ALREADY_VOTED",
    }


def test_particular_link_flow(client: TestClient) -> None:
    """Each voter casts with the token from their own URL."""
    response = client.post(
        "/credentials/particular-links",
        json={"category_id": "president", "ttl_seconds": 600, "voter_ids": ["amir", "zara"]},
    )
    assert response.status_code == 200
    body = response.json()
    link_id = body["link"]["id"]
    urls = {entry["voter_id"]: entry["url"] for entry in body["urls"]}
    zara_token = parse_qs(urlparse(urls["zara"]).query)["token"][0]

    wrong = client.post(
        f"/voting/particular/{link_id}/validate", json={"bearer_secret": "not-a-token"}
    )
    assert wrong.status_code == 403
    assert wrong.json()["code"] == "NOT_AUTHORIZED_FOR_CREDENTIAL"

    cast = client.post(
        f"/voting/particular/{link_id}/cast",
        json={"bearer_secret": zara_token, "candidate_id": "alice"},
    )
    assert cast.status_code == 200
    assert cast.json()["vote"]["voter_id"] == "zara"


def test_link_endpoint_rejects_other_kind(client: TestClient) -> None:
    """A unified link id on the particular endpoint is refused."""
    link_id = _issue_unified(client)
    response = client.post(
        f"/voting/particular/{link_id}/validate", json={"bearer_secret": "anything"}
    )
    assert response.status_code == 422
    assert response.json()["code"] == "WRONG_CREDENTIAL_KIND"


def test_individual_token_flow(client: TestClient) -> None:
    """Self-encoded tokens vote once and are then spent."""
    response = client.post(
        "/credentials/tokens",
        json={"category_id": "president", "ttl_seconds": 600, "voter_ids": ["amir"]},
    )
    assert response.status_code == 200
    [token] = response.json()["tokens"]

    cast = client.post(
        "/voting/cast", json={"credential": token["reference"], "candidate_id": "alice"}
    )
    assert cast.status_code == 200
    assert cast.json()["vote"]["credential_kind"] == "self_encoded"

    replay = client.post("/voting/validate", json={"credential": token["reference"]})
    assert replay.status_code == 410
    assert replay.json()["code"] == "DEACTIVATED"


def test_deactivated_link_is_gone(client: TestClient) -> None:
    """Deactivated links answer 410."""
    link_id = _issue_unified(client)
    deactivated = client.post(f"/credentials/{link_id}/deactivate")
    assert deactivated.status_code == 200
    assert deactivated.json()["kind"] == "unified_link"

    response = client.post(
        "/voting/validate", json={"credential": link_id, "bearer_secret": "03001234567"}
    )
    assert response.status_code == 410
    assert response.json()["code"] == "DEACTIVATED"


def test_issuing_validates_input(client: TestClient) -> None:
    """Bad durations and unknown categories are rejected."""
    too_short = client.post(
        "/credentials/unified-links", json={"category_id": "president", "ttl_seconds": 30}
    )
    assert too_short.status_code == 422
    assert too_short.json()["code"] == "INVALID_INPUT"

    missing = client.post(
        "/credentials/unified-links", json={"category_id": "mayor", "ttl_seconds": 600}
    )
    assert missing.status_code == 404


def test_casting_for_candidate_of_other_category(client: TestClient) -> None:
    """Candidates outside the ballot are not found."""
    link_id = _issue_unified(client)
    response = client.post(
        f"/voting/unified/{link_id}/cast",
        json={"bearer_secret": "03001234567", "candidate_id": "carol"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "CANDIDATE_NOT_FOUND"
