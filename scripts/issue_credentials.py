"""Issue voting credentials from the command line and print their URLs."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create voting links or tokens for one category.",
    )
    parser.add_argument(
        "kind",
        choices=["unified", "particular", "individual", "collective"],
        help="Credential shape to issue.",
    )
    parser.add_argument(
        "category_id",
        type=str,
        help="Category the credential votes in.",
    )
    parser.add_argument(
        "--voter",
        dest="voter_ids",
        action="append",
        default=[],
        help="Voter id (repeat for several voters).",
    )
    parser.add_argument(
        "--ttl",
        type=int,
        default=1800,
        help="Lifetime in seconds (default: 1800).",
    )
    parser.add_argument(
        "--issued-by",
        type=str,
        default="cli",
        help="Operator identity recorded on stored credentials.",
    )
    return parser.parse_args(argv)


def issue(
    kind: str,
    category_id: str,
    voter_ids: list[str],
    ttl_seconds: int,
    issued_by: str,
) -> tuple[list[str], int]:
    """Issue credentials; return printable ``label: url`` lines and the expiry."""
    from ballot.schemas.credentials import TokenType
    from ballot.services.issuer_service import (
        CredentialIssuer,
        particular_link_url,
        unified_link_url,
    )
    from ballot.store import get_store

    issuer = CredentialIssuer(get_store())

    if kind == "unified":
        link = issuer.issue_unified_link(
            category_id, ttl_seconds, voter_ids or None, issued_by=issued_by
        )
        return [f"unified: {unified_link_url(link.id)}"], link.expires_at

    if kind == "particular":
        link = issuer.issue_particular_links(
            voter_ids, category_id, ttl_seconds, issued_by=issued_by
        )
        lines = [
            f"{entry.username or entry.voter_id} ({entry.phone}): "
            f"{particular_link_url(link.id, entry.personal_token)}"
            for entry in link.voter_entries
        ]
        return lines, link.expires_at

    tokens = issuer.issue_legacy_token(
        voter_ids, category_id, TokenType(kind), ttl_seconds, issued_by=issued_by
    )
    lines = [f"{', '.join(token.voter_ids)}: {token.url}" for token in tokens]
    return lines, tokens[0].expires_at


def print_lines(lines: Sequence[str], expires_at: int) -> None:
    """Print issued credentials in copy-friendly form."""
    from ballot.utils.time import format_time_remaining, from_epoch_ms

    expiry = from_epoch_ms(expires_at).isoformat()
    print(f"Issued {len(lines)} credential URL(s), expiring {expiry}:")
    print(f"({format_time_remaining(expires_at)})")
    for line in lines:
        print(line)


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    lines, expires_at = issue(
        kind=args.kind,
        category_id=args.category_id,
        voter_ids=args.voter_ids,
        ttl_seconds=args.ttl,
        issued_by=args.issued_by,
    )
    print_lines(lines, expires_at)


if __name__ == "__main__":
    main()
