"""
Audit service: one immutable StatusEvent per committed transition.

Recording is best-effort: the order's status commit is authoritative, so a
failed audit write is logged and surfaced as a warning, never raised.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db_models import StatusEvent
from domain.ports import AuditStore
from exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


@dataclass
class AuditOutcome:
    event: StatusEvent
    warning: str | None = None

    @property
    def persisted(self) -> bool:
        return self.warning is None


class SqlAuditStore:
    """
    Append-only writer for the status_events table.

    Each append runs in its own session so a failed audit write can never
    roll back or expire the order state committed before it.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def append(self, event: StatusEvent) -> None:
        async with self.session_factory() as session:
            session.add(event)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageUnavailable(f"audit write failed: {e}") from e


class AuditRecorder:
    def __init__(self, store: AuditStore):
        self.store = store

    async def record(
        self,
        *,
        order_id: str,
        action: str,
        from_status: str,
        to_status: str,
        employee_name: str,
        role: str,
        remarks: str | None = None,
        timestamp: datetime | None = None,
    ) -> AuditOutcome:
        event = StatusEvent(
            order_id=order_id,
            action=getattr(action, "value", action),
            from_status=getattr(from_status, "value", from_status),
            to_status=getattr(to_status, "value", to_status),
            employee_name=employee_name,
            role=getattr(role, "value", role),
            remarks=remarks,
            timestamp=timestamp or datetime.utcnow(),
        )
        try:
            await self.store.append(event)
        except Exception as e:
            logger.warning(
                f"Audit event not persisted for {order_id} "
                f"({event.from_status} -> {event.to_status}): {e}"
            )
            return AuditOutcome(event=event, warning=f"Audit trail not saved: {e}")

        logger.info(f"Audit: {order_id} {event.from_status} -> {event.to_status} by {employee_name}")
        return AuditOutcome(event=event)


async def list_events(db: AsyncSession, *, order_id: str) -> list[StatusEvent]:
    """Audit trail for one order, oldest first."""
    try:
        res = await db.execute(
            select(StatusEvent)
            .where(StatusEvent.order_id == order_id)
            .order_by(StatusEvent.timestamp.asc(), StatusEvent.id.asc())
        )
    except SQLAlchemyError as e:
        raise StorageUnavailable(f"audit read failed: {e}") from e
    return res.scalars().all()
