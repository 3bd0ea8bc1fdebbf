"""
Order service: intake of new orders and note updates.

New orders always start in Waiting; everything after that goes through the
workflow engine. Transaction ids:

    Paid:   DDMMYYYY-PO-<4 digits supplied at the till>
    Order:  DDMMYYYY-ORD-<random 4 digits>, regenerated on collision
    Batch:  <base>-1 … <base>-n when several orders are placed together
"""

import logging
import random
import re
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order
from domain.constants import (
    ORDER_ID_MARKER,
    PAID_ID_MARKER,
    PAINT_QUANTITIES,
    PENDING_COLOUR_CODE,
    UNASSIGNED,
)
from domain.enums import Category, OrderStatus, OrderType, PoType
from domain.errors import ConflictError, NotFoundError, UnavailableError, ValidationError
from exceptions import OrderNotFound, StorageUnavailable
from services import eta_service
from services.order_repository import SqlOrderRepository

logger = logging.getLogger(__name__)

_CONTACT_RE = re.compile(r"[0-9]{10}")
_SUFFIX_RE = re.compile(r"[0-9]{4}")


def format_date_prefix(when: datetime) -> str:
    return when.strftime("%d%m%Y")


def build_transaction_ids(base: str, count: int) -> list[str]:
    if count == 1:
        return [base]
    return [f"{base}-{i}" for i in range(1, count + 1)]


def validate_items(items: list[dict]) -> list[dict]:
    """Normalize per-order fields; raises ValidationError naming the 1-based order."""
    normalized = []
    for i, item in enumerate(items, start=1):
        try:
            category = Category(item.get("category") or Category.NEW_MIX.value)
        except ValueError:
            raise ValidationError(f"Unknown category for order {i}", field="category")

        paint_type = (item.get("paint_type") or "").strip()
        if not paint_type:
            raise ValidationError(f"Car details required for order {i}", field="paint_type")

        colour_code = (item.get("colour_code") or "").strip()
        if category == Category.NEW_MIX:
            colour_code = PENDING_COLOUR_CODE
        elif not colour_code:
            raise ValidationError(f"Colour code required for order {i}", field="colour_code")

        quantity = item.get("paint_quantity")
        if quantity not in PAINT_QUANTITIES:
            raise ValidationError(f"Select paint quantity for order {i}", field="paint_quantity")

        normalized.append({
            "category": category.value,
            "paint_type": paint_type,
            "colour_code": colour_code,
            "paint_quantity": quantity,
        })
    return normalized


async def create_orders(
    db: AsyncSession,
    *,
    order_type: str,
    customer_name: str,
    client_contact: str,
    items: list[dict],
    po_type: str | None = None,
    trans_suffix: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[dict]:
    """
    Validate and insert 1..N orders in Waiting.

    Returns one {"order", "eta_minutes", "eta_display"} per created order; the
    i-th order of a batch is quoted at queue position depth + i.
    """
    now = now or datetime.utcnow()
    rng = rng or random.Random()

    count = len(items)
    if count < 1 or count > settings.max_orders_per_submission:
        raise ValidationError(
            f"Number of orders must be between 1 and {settings.max_orders_per_submission}"
        )

    try:
        order_type = OrderType(order_type)
    except ValueError:
        raise ValidationError("Order type must be 'Paid' or 'Order'", field="order_type")

    if order_type == OrderType.PAID:
        if not _SUFFIX_RE.fullmatch(trans_suffix or ""):
            raise ValidationError("Paid orders require a 4-digit Transaction ID", field="trans_suffix")
        try:
            po_type = PoType(po_type).value
        except ValueError:
            raise ValidationError("Select a PO option (Nexa or Carvello) for Paid orders", field="po_type")
    else:
        po_type = None

    if not _CONTACT_RE.fullmatch(client_contact or ""):
        raise ValidationError("Enter a 10-digit phone number", field="client_contact")
    customer_name = (customer_name or "").strip()
    if not customer_name:
        raise ValidationError("Client name required", field="customer_name")

    normalized = validate_items(items)
    repo = SqlOrderRepository(db)
    prefix = format_date_prefix(now)

    try:
        if order_type == OrderType.PAID:
            ids = build_transaction_ids(f"{prefix}-{PAID_ID_MARKER}-{trans_suffix}", count)
            for tid in ids:
                if await repo.exists(tid):
                    raise ConflictError(
                        f"Transaction ID {tid} already exists. Please use a different 4-digit ID.",
                        details={"transaction_id": tid},
                    )
        else:
            ids = await _generate_order_ids(repo, prefix, count, rng)

        counts = await repo.queue_counts()
    except StorageUnavailable as e:
        logger.error(f"Order intake lookup failed: {e}")
        raise UnavailableError("Order storage unavailable")

    created = []
    for offset, (tid, item) in enumerate(zip(ids, normalized)):
        order = Order(
            transaction_id=tid,
            customer_name=customer_name,
            client_contact=client_contact,
            paint_type=item["paint_type"],
            paint_quantity=item["paint_quantity"],
            category=item["category"],
            colour_code=item["colour_code"],
            current_status=OrderStatus.WAITING.value,
            assigned_employee=UNASSIGNED,
            order_type=order_type.value,
            po_type=po_type,
            start_time=now,
            status_started_at=now,
        )
        db.add(order)
        eta = eta_service.estimate_for_counts(item["category"], counts, offset=offset)
        created.append({
            "order": order,
            "eta_minutes": eta,
            "eta_display": eta_service.format_minutes(eta),
        })

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Transaction ID already used; please resubmit")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Order intake failed: {e}")
        raise UnavailableError("Order storage unavailable")

    logger.info(f"Created {count} order(s): {', '.join(ids)}")
    return created


async def _generate_order_ids(
    repo: SqlOrderRepository, prefix: str, count: int, rng: random.Random
) -> list[str]:
    for _ in range(settings.order_id_max_retries):
        suffix = rng.randint(1000, 9999)
        ids = build_transaction_ids(f"{prefix}-{ORDER_ID_MARKER}-{suffix}", count)
        taken = [tid for tid in ids if await repo.exists(tid)]
        if not taken:
            return ids
        logger.debug(f"Transaction ID collision on {taken[0]}, regenerating")
    raise ConflictError("Could not generate a unique Transaction ID; please retry")


async def is_transaction_id_available(db: AsyncSession, *, transaction_id: str) -> bool:
    try:
        return not await SqlOrderRepository(db).exists(transaction_id)
    except StorageUnavailable:
        raise UnavailableError("Order storage unavailable")


async def add_note(db: AsyncSession, *, transaction_id: str, text: str) -> Order:
    """Append free text to an order's note; the note is never overwritten."""
    text = (text or "").strip()
    if not text:
        raise ValidationError("Note text is required", field="note")
    try:
        return await SqlOrderRepository(db).append_note(transaction_id, text)
    except OrderNotFound:
        raise NotFoundError("Order", transaction_id)
    except StorageUnavailable:
        raise UnavailableError("Order storage unavailable")
