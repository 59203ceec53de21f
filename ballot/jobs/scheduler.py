"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ballot.config import settings
from ballot.jobs.purge_expired import purge_expired_credentials

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("purge_expired_credentials") is None:
        scheduler.add_job(
            purge_expired_credentials,
            CronTrigger(hour=3, minute=0, timezone=settings.timezone),
            id="purge_expired_credentials",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
