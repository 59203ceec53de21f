"""API router package."""

from ballot.routers import credentials, voting

__all__ = [
    "credentials",
    "voting",
]
