"""
LEO-CAD Officer Chat — Scheduler Jobs

WebSocket keepalive on its own APScheduler AsyncIOScheduler instance.
"""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import CONFIG
from .websocket import get_broadcaster

logger = logging.getLogger(__name__)

_scheduler = None


def get_chat_scheduler() -> AsyncIOScheduler:
    """Get or create the singleton chat scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 30}
        )
    return _scheduler


async def _ping_connections():
    await get_broadcaster().ping_all()


def init_chat_scheduler():
    """Register and start the keepalive job. Must run inside the event loop."""
    scheduler = get_chat_scheduler()

    if scheduler.running:
        return

    scheduler.add_job(
        _ping_connections,
        "interval",
        seconds=CONFIG["ws_ping_seconds"],
        id="officer_chat_ws_ping",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"[Scheduler] Officer chat keepalive every {CONFIG['ws_ping_seconds']}s")


def shutdown_chat_scheduler():
    scheduler = get_chat_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Officer chat keepalive stopped")
