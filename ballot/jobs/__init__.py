"""Background job modules for periodic Ballot tasks."""

from ballot.jobs.purge_expired import purge_expired_credentials

__all__ = [
    "purge_expired_credentials",
]
