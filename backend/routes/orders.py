"""
Order endpoints for intake, lookup, stage changes and the audit trail.

Stage changes follow the two-phase protocol: a PUT that still needs operator
input returns 202 with data.missing; the client re-sends with those fields.
"""

import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, get_repository, get_role, get_workflow_engine, pagination_params
from domain.enums import OrderStatus, Role
from domain.errors import ForbiddenError, NotFoundError, UnavailableError
from domain.responses import paginated_response, success_response
from exceptions import OrderNotFound, StorageUnavailable
from middleware.rate_limit import rate_limit
from models import CancelOrderRequest, CreateOrdersRequest, NoteRequest, StatusChangeRequest
from services import audit_service, order_service
from services.order_repository import SqlOrderRepository
from services.workflow_engine import TransitionRequest, TransitionResult, WorkflowEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


async def _load_order(repo: SqlOrderRepository, transaction_id: str):
    try:
        return await repo.get(transaction_id)
    except OrderNotFound:
        raise NotFoundError("Order", transaction_id)
    except StorageUnavailable:
        raise UnavailableError("Order storage unavailable")


async def _storage(awaitable):
    try:
        return await awaitable
    except StorageUnavailable as e:
        logger.error(f"Order storage read failed: {e}")
        raise UnavailableError("Order storage unavailable")


def _require_admin(role: Role):
    if role != Role.ADMIN:
        raise ForbiddenError("Only Admins can view finished and cancelled orders")


def _transition_response(result: TransitionResult):
    body = success_response(
        data=result.to_dict(),
        meta={"warnings": result.warnings} if result.warnings else None,
    )
    if result.needs_input:
        return JSONResponse(status_code=202, content=body)
    return body


@router.post("", status_code=201)
async def create_orders(
    request: CreateOrdersRequest,
    db: AsyncSession = Depends(get_db),
):
    created = await order_service.create_orders(
        db,
        order_type=request.order_type,
        po_type=request.po_type,
        trans_suffix=request.trans_suffix,
        customer_name=request.customer_name,
        client_contact=request.client_contact,
        items=[item.model_dump() for item in request.orders],
    )
    return success_response(
        data=[
            {
                **c["order"].to_dict(),
                "eta_minutes": c["eta_minutes"],
                "eta": c["eta_display"],
            }
            for c in created
        ],
        meta={"total": len(created)},
    )


@router.get("")
async def list_orders(
    role: Role = Depends(get_role),
    page: Pagination = Depends(pagination_params),
    repo: SqlOrderRepository = Depends(get_repository),
):
    orders = await _storage(repo.list_visible(role))
    return paginated_response(
        [o.to_dict() for o in orders],
        limit=page["limit"],
        offset=page["offset"],
    )


@router.get("/search")
async def search_orders(
    q: str = Query(..., min_length=1),
    sort_by: str = Query("transaction_id", alias="sortBy"),
    sort_order: str = Query("DESC", alias="sortOrder"),
    repo: SqlOrderRepository = Depends(get_repository),
):
    orders = await _storage(repo.search(q, sort_by=sort_by, sort_order=sort_order))
    return success_response(data=[o.to_dict() for o in orders], meta={"total": len(orders)})


@router.get("/archived")
async def list_archived_orders(
    role: Role = Depends(get_role),
    page: Pagination = Depends(pagination_params),
    repo: SqlOrderRepository = Depends(get_repository),
):
    """Completed orders, most recently finished first."""
    _require_admin(role)
    orders = await _storage(repo.list_by_status(OrderStatus.COMPLETE))
    return paginated_response(
        [o.to_dict() for o in orders],
        limit=page["limit"],
        offset=page["offset"],
    )


@router.get("/deleted")
async def list_cancelled_orders(
    role: Role = Depends(get_role),
    page: Pagination = Depends(pagination_params),
    repo: SqlOrderRepository = Depends(get_repository),
):
    """Cancelled orders, most recently cancelled first."""
    _require_admin(role)
    orders = await _storage(repo.list_by_status(OrderStatus.CANCELLED))
    return paginated_response(
        [o.to_dict() for o in orders],
        limit=page["limit"],
        offset=page["offset"],
    )


@router.get("/check-id/{transaction_id}")
async def check_transaction_id(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
):
    available = await order_service.is_transaction_id_available(db, transaction_id=transaction_id)
    return success_response(data={"transaction_id": transaction_id, "exists": not available})


@router.get("/{transaction_id}")
async def get_order(
    transaction_id: str,
    repo: SqlOrderRepository = Depends(get_repository),
):
    order = await _load_order(repo, transaction_id)
    return success_response(data=order.to_dict())


@router.put("/{transaction_id}/status")
async def change_status(
    transaction_id: str,
    request: StatusChangeRequest,
    role: Role = Depends(get_role),
    repo: SqlOrderRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_workflow_engine),
    _=Depends(rate_limit("status-change")),
):
    order = await _load_order(repo, transaction_id)
    result = await engine.request_transition(
        TransitionRequest(
            order=order,
            target=request.status,
            role=role,
            colour_code=request.colour_code,
            employee_code=request.employee_code,
            reason=request.reason,
        )
    )
    return _transition_response(result)


@router.post("/{transaction_id}/cancel")
async def cancel_order(
    transaction_id: str,
    request: CancelOrderRequest,
    role: Role = Depends(get_role),
    repo: SqlOrderRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_workflow_engine),
    _=Depends(rate_limit("status-change")),
):
    order = await _load_order(repo, transaction_id)
    result = await engine.cancel_order(
        order, role, request.reason, employee_code=request.employee_code
    )
    return _transition_response(result)


@router.put("/{transaction_id}/note")
async def add_note(
    transaction_id: str,
    request: NoteRequest,
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.add_note(db, transaction_id=transaction_id, text=request.note)
    return success_response(data=order.to_dict())


@router.get("/{transaction_id}/events")
async def list_order_events(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
    repo: SqlOrderRepository = Depends(get_repository),
):
    await _load_order(repo, transaction_id)
    events = await _storage(audit_service.list_events(db, order_id=transaction_id))
    return success_response(data=[e.to_dict() for e in events], meta={"total": len(events)})
