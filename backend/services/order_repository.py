"""
Order repository: SQLAlchemy persistence for orders.

commit() is the only write path for status changes. It is an atomic
conditional UPDATE keyed by transaction_id AND the status the caller last
read, so two operators racing on the same order cannot both win:

    UPDATE orders SET ... WHERE transaction_id = :id AND current_status = :expected

Zero affected rows → OrderNotFound (id absent) or StaleOrderState (status moved).
"""
import logging

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order
from domain.constants import ACTIVE_STATUSES, SEARCH_SORT_FIELDS, TERMINAL_STATUSES
from domain.enums import OrderStatus, Role
from domain.ports import QueueCounts
from exceptions import OrderNotFound, StaleOrderState, StorageUnavailable

logger = logging.getLogger(__name__)

_TERMINAL = [s.value for s in TERMINAL_STATUSES]
_ACTIVE = [s.value for s in ACTIVE_STATUSES]


class SqlOrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _read(self, stmt, what: str):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"{what} failed: {e}") from e

    async def get(self, transaction_id: str) -> Order:
        res = await self._read(
            select(Order)
            .where(Order.transaction_id == transaction_id)
            .execution_options(populate_existing=True),
            "order read",
        )
        order = res.scalar_one_or_none()
        if order is None:
            raise OrderNotFound(transaction_id)
        return order

    async def exists(self, transaction_id: str) -> bool:
        res = await self._read(
            select(Order.id).where(Order.transaction_id == transaction_id),
            "order lookup",
        )
        return res.scalar_one_or_none() is not None

    async def list_active(self) -> list[Order]:
        """Every order not yet Complete or Cancelled, oldest first."""
        res = await self._read(
            select(Order)
            .where(Order.current_status.not_in(_TERMINAL))
            .order_by(Order.start_time.asc(), Order.id.asc()),
            "order listing",
        )
        return res.scalars().all()

    async def list_visible(self, role) -> list[Order]:
        """Admins also see Ready orders awaiting collection; staff see the production queue only."""
        orders = await self.list_active()
        if Role(role) == Role.ADMIN:
            return orders
        return [o for o in orders if o.current_status != OrderStatus.READY.value]

    async def list_by_status(self, status) -> list[Order]:
        """Orders in one status, most recently moved there first (archive / cancelled views)."""
        res = await self._read(
            select(Order)
            .where(Order.current_status == OrderStatus(status).value)
            .order_by(Order.status_started_at.desc(), Order.id.desc()),
            "order listing",
        )
        return res.scalars().all()

    async def queue_counts(self) -> QueueCounts:
        res = await self._read(
            select(Order.current_status, func.count(Order.id)).group_by(Order.current_status),
            "queue count",
        )
        by_status = {status: count for status, count in res.all()}
        return QueueCounts(
            waiting=by_status.get(OrderStatus.WAITING.value, 0),
            active=sum(by_status.get(s, 0) for s in _ACTIVE),
            ready=by_status.get(OrderStatus.READY.value, 0),
        )

    async def commit(self, transaction_id: str, expected_status: str, changes: dict) -> Order:
        stmt = (
            update(Order)
            .where(
                Order.transaction_id == transaction_id,
                Order.current_status == expected_status,
            )
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                found = (await self.db.execute(
                    select(Order.id).where(Order.transaction_id == transaction_id)
                )).scalar_one_or_none() is not None
                await self.db.rollback()
                if not found:
                    raise OrderNotFound(transaction_id)
                raise StaleOrderState(
                    f"{transaction_id} is no longer {expected_status}"
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailable(f"order commit failed: {e}") from e

        return await self.get(transaction_id)

    async def append_note(self, transaction_id: str, text: str) -> Order:
        """Append a line to the order note in a single UPDATE."""
        stmt = (
            update(Order)
            .where(Order.transaction_id == transaction_id)
            .values(
                note=case(
                    (or_(Order.note.is_(None), Order.note == ""), text),
                    else_=Order.note + "\n" + text,
                )
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                raise OrderNotFound(transaction_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailable(f"note update failed: {e}") from e

        return await self.get(transaction_id)

    async def search(
        self,
        term: str,
        *,
        sort_by: str = "transaction_id",
        sort_order: str = "DESC",
        limit: int = 50,
    ) -> list[Order]:
        """Match transaction id, contact number, or customer name (case-insensitive)."""
        if sort_by not in SEARCH_SORT_FIELDS:
            sort_by = "transaction_id"
        column = getattr(Order, sort_by)
        ordering = column.asc() if sort_order.upper() == "ASC" else column.desc()

        pattern = f"%{term.strip()}%"
        res = await self._read(
            select(Order)
            .where(
                or_(
                    Order.transaction_id.ilike(pattern),
                    Order.client_contact.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                )
            )
            .order_by(ordering)
            .limit(limit),
            "order search",
        )
        return res.scalars().all()
