"""
Queue monitor: periodically refreshes queue counts and ETA quotes.

Runs as an asyncio background task during the FastAPI app lifespan. The
snapshot is read-only display data for dashboards and intake previews; the
workflow engine never consults it (status changes are checked against the
database at commit time).
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from config import settings
from database import async_session
from domain.enums import Category
from domain.ports import QueueCounts
from services import eta_service
from services.order_repository import SqlOrderRepository

logger = logging.getLogger(__name__)

_monitor_task: Optional[asyncio.Task] = None
_is_running: bool = False
_errors_count: int = 0
_snapshot: Optional[dict] = None


def build_snapshot(counts: QueueCounts, refreshed_at: datetime | None = None) -> dict:
    """Counts plus the ETA a new order of each category would be quoted."""
    depth = counts.depth_for_new_order
    eta = {}
    for category in Category:
        minutes = eta_service.estimate(category, depth)
        eta[category.value] = {
            "minutes": minutes,
            "display": eta_service.format_minutes(minutes),
        }
    return {
        "waiting": counts.waiting,
        "active": counts.active,
        "ready": counts.ready,
        "queueDepth": depth,
        "eta": eta,
        "refreshedAt": (refreshed_at or datetime.utcnow()).isoformat(),
    }


async def refresh() -> dict:
    """Recompute the snapshot from the database once."""
    global _snapshot
    async with async_session() as db:
        counts = await SqlOrderRepository(db).queue_counts()
    _snapshot = build_snapshot(counts)
    return _snapshot


async def _monitor_loop():
    global _is_running, _errors_count

    _is_running = True
    poll_interval = settings.queue_poll_seconds
    logger.info(f"Queue monitor started (polling every {poll_interval}s)")

    while _is_running:
        try:
            await refresh()
            await asyncio.sleep(poll_interval)
        except asyncio.CancelledError:
            logger.info("Queue monitor cancelled")
            break
        except Exception as e:
            _errors_count += 1
            logger.error(f"Queue monitor cycle error: {e}")
            backoff = min(300, poll_interval * 2) if _errors_count > 5 else poll_interval
            await asyncio.sleep(backoff)

    _is_running = False
    logger.info("Queue monitor stopped")


async def start():
    """Start the monitor as a background asyncio task."""
    global _monitor_task, _is_running

    if _monitor_task and not _monitor_task.done():
        logger.warning("Queue monitor already running")
        return

    _is_running = True
    _monitor_task = asyncio.create_task(_monitor_loop())


async def stop():
    """Stop the monitor gracefully."""
    global _monitor_task, _is_running
    _is_running = False

    if _monitor_task and not _monitor_task.done():
        _monitor_task.cancel()
        try:
            await _monitor_task
        except asyncio.CancelledError:
            pass

    _monitor_task = None


def get_snapshot() -> Optional[dict]:
    return _snapshot


def get_status() -> dict:
    return {
        "running": _is_running,
        "errorsCount": _errors_count,
        "pollIntervalSeconds": settings.queue_poll_seconds,
        "hasSnapshot": _snapshot is not None,
    }
