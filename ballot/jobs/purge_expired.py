"""Expired credential purge job."""

from __future__ import annotations

import logging

from ballot.config import settings
from ballot.services.issuer_service import CredentialIssuer
from ballot.store import get_store

logger = logging.getLogger(__name__)


async def purge_expired_credentials() -> None:
    """Delete credentials whose expiry is older than the retention window."""
    issuer = CredentialIssuer(get_store())
    removed = issuer.purge_expired(settings.credential_purge_retention_days)
    logger.info("purge_expired_credentials completed, %s credentials removed", removed)
