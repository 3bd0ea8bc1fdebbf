"""
Queue endpoints: counts and ETA quotes for dashboards and intake previews.
"""
import logging

from fastapi import APIRouter, Depends, Query

from deps import get_repository
from domain.enums import Category
from domain.errors import UnavailableError, ValidationError
from domain.responses import success_response
from exceptions import StorageUnavailable
from services import eta_service, queue_monitor
from services.order_repository import SqlOrderRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/queue", tags=["queue"])


async def _live_counts(repo: SqlOrderRepository):
    try:
        return await repo.queue_counts()
    except StorageUnavailable:
        raise UnavailableError("Order storage unavailable")


@router.get("")
async def get_queue(
    fresh: bool = Query(False, description="Bypass the monitor snapshot"),
    repo: SqlOrderRepository = Depends(get_repository),
):
    """Latest monitor snapshot, or live counts when none exists yet."""
    snapshot = None if fresh else queue_monitor.get_snapshot()
    if snapshot is None:
        snapshot = queue_monitor.build_snapshot(await _live_counts(repo))
    return success_response(data=snapshot, meta={"monitor": queue_monitor.get_status()})


@router.get("/eta")
async def get_eta(
    category: str = Query("New Mix"),
    repo: SqlOrderRepository = Depends(get_repository),
):
    try:
        category = Category(category)
    except ValueError:
        raise ValidationError(f"Unknown category: {category}", field="category")

    counts = await _live_counts(repo)
    minutes = eta_service.estimate_for_counts(category, counts)
    return success_response(
        data={
            "category": category.value,
            "queueDepth": counts.depth_for_new_order,
            "minutes": minutes,
            "display": eta_service.format_minutes(minutes),
        }
    )
