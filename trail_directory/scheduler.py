"""APScheduler: token housekeeping and edition status sweeps."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from trail_directory import supabase_client as db
from trail_directory.config import EDITION_SWEEP_MINUTES, TOKEN_PURGE_MINUTES
from trail_directory.services.editions import sweep_statuses

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("interval", minutes=TOKEN_PURGE_MINUTES, id="purge_expired_tokens")
async def purge_expired_tokens():
    """Delete refresh tokens past their expiry."""
    try:
        removed = db.purge_expired_refresh_tokens()
        if removed:
            logger.info("Purged %d expired refresh tokens", removed)
    except Exception as e:
        logger.error("Refresh token purge failed: %s", e)


@scheduler.scheduled_job("interval", minutes=EDITION_SWEEP_MINUTES, id="sweep_edition_statuses")
async def sweep_edition_statuses():
    """Move editions to ONGOING / FINISHED as their dates pass."""
    try:
        result = sweep_statuses()
        if result["started"] or result["finished"]:
            logger.info(
                "Edition sweep: %d started, %d finished",
                result["started"],
                result["finished"],
            )
    except Exception as e:
        logger.error("Edition status sweep failed: %s", e)
