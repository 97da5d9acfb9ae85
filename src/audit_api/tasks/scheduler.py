"""Background task scheduler using APScheduler."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.config import get_settings
from audit_api.repositories.user_repository import PasswordResetTokenRepository, RefreshTokenRepository

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None


async def purge_expired_tokens(session: AsyncSession) -> dict[str, int]:
    """Delete expired or revoked refresh tokens and expired or used reset tokens.

    Returns:
        Number of deleted rows per token table
    """
    refresh_deleted = await RefreshTokenRepository(session).cleanup_expired()
    reset_deleted = await PasswordResetTokenRepository(session).cleanup_expired()
    await session.commit()
    return {"refresh_tokens": refresh_deleted, "password_reset_tokens": reset_deleted}


async def purge_expired_tokens_job() -> None:
    """Background job wrapping purge_expired_tokens."""
    from audit_api.database import async_session_maker

    async with async_session_maker() as session:
        try:
            results = await purge_expired_tokens(session)
            logger.info(f"Token cleanup completed: {results}")
        except Exception as e:
            logger.error(f"Token cleanup failed: {e}")
            await session.rollback()


async def start_scheduler() -> None:
    """Start the background task scheduler."""
    global _scheduler

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("Background scheduler disabled")
        return

    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        purge_expired_tokens_job,
        trigger=IntervalTrigger(minutes=settings.token_cleanup_interval_minutes),
        id="purge_expired_tokens",
        name="Purge expired tokens",
        replace_existing=True,
    )

    _scheduler.start()
    logger.info("Background scheduler started")


async def stop_scheduler() -> None:
    """Stop the background task scheduler."""
    global _scheduler

    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Background scheduler stopped")
