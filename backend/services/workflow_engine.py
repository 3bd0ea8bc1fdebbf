"""
Workflow engine: decides and commits order stage changes.

Two-phase protocol:
  1. request_transition() validates the edge and role, then asks the
     verification gate which inputs are still missing. If any are, it returns
     a NEEDS_INPUT result naming them and touches nothing.
  2. The caller collects the inputs (colour code, employee code) and calls
     request_transition() again with them supplied.

On a satisfied request the engine resolves the employee code, commits through
the repository (conditional on the status it read), then records exactly one
audit event. The engine keeps no state between calls and performs no retries;
Conflict/Unavailable go back to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from domain.constants import UNASSIGNED
from domain.enums import AuditAction, InputKind, OrderStatus, Role
from domain.errors import (
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    InvalidEmployeeCodeError,
    MissingReasonError,
    NotFoundError,
    UnavailableError,
)
from domain.ports import EmployeeDirectory, OrderRepository
from domain.transitions import find_edge
from exceptions import OrderNotFound, StaleOrderState, StorageUnavailable, UnknownEmployeeCode
from services import verification_gate
from services.audit_service import AuditRecorder

logger = logging.getLogger(__name__)

COMMITTED = "committed"
NEEDS_INPUT = "needs_input"


@dataclass
class TransitionRequest:
    """One requested stage change; built by the caller, discarded after use."""
    order: Any
    target: str
    role: str = Role.USER.value
    colour_code: str | None = None
    employee_code: str | None = None
    reason: str | None = None


@dataclass
class TransitionResult:
    outcome: str
    order: Any
    missing: list[InputKind] = field(default_factory=list)
    event: Any = None
    warnings: list[str] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.outcome == COMMITTED

    @property
    def needs_input(self) -> bool:
        return self.outcome == NEEDS_INPUT

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "order": self.order.to_dict(),
            "missing": [m.value for m in self.missing],
            "event": self.event.to_dict() if self.event is not None else None,
            "warnings": self.warnings,
        }


def _value(v) -> str:
    return getattr(v, "value", v)


def _filled(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


class WorkflowEngine:
    def __init__(
        self,
        repository: OrderRepository,
        directory: EmployeeDirectory,
        recorder: AuditRecorder,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.repository = repository
        self.directory = directory
        self.recorder = recorder
        self.clock = clock

    async def request_transition(self, request: TransitionRequest) -> TransitionResult:
        order = request.order
        transaction_id = order.transaction_id
        from_status = order.current_status
        target = _value(request.target)

        # ── Local validation (no I/O) ───────────────────────────────
        edge = find_edge(from_status, target)
        if edge is None:
            raise IllegalTransitionError(from_status, target)

        try:
            role = Role(_value(request.role))
        except ValueError:
            raise ForbiddenError(f"Unknown role: {request.role}")

        if edge.admin_only and role != Role.ADMIN:
            raise ForbiddenError(
                f"Only Admins can move orders from {from_status} to {target}",
                details={"from_status": from_status, "to_status": target},
            )

        reason = _filled(request.reason)
        if edge.needs_reason and reason is None:
            raise MissingReasonError("cancel" if edge.action == AuditAction.CANCEL else "revert")

        # ── Verification gate ───────────────────────────────────────
        requirements = verification_gate.evaluate(
            order.category, from_status, target, order.colour_code
        )
        missing = requirements.missing(
            colour_code=request.colour_code,
            employee_code=request.employee_code,
            reason=reason,
        )
        if missing:
            logger.info(
                f"{transaction_id} {from_status} -> {target} needs "
                f"{', '.join(m.value for m in missing)}"
            )
            return TransitionResult(outcome=NEEDS_INPUT, order=order, missing=missing)

        # ── Employee identity ───────────────────────────────────────
        employee_name = order.assigned_employee or UNASSIGNED
        employee_code = _filled(request.employee_code)
        if employee_code is not None:
            employee_name = await self._resolve_employee(employee_code, transaction_id)

        colour_code = order.colour_code
        if requirements.needs_colour_code:
            colour_code = request.colour_code.strip()

        # ── Commit ──────────────────────────────────────────────────
        now = self.clock()
        changes = {
            "current_status": target,
            "assigned_employee": employee_name,
            "colour_code": colour_code,
            "status_started_at": now,
        }
        if reason is not None:
            changes["note"] = _append_line(order.note, f"{target}: {reason}")

        try:
            updated = await self.repository.commit(transaction_id, from_status, changes)
        except StaleOrderState:
            raise ConflictError(
                f"Order {transaction_id} changed since it was read; refresh and retry",
                details={"expected_status": from_status},
            )
        except OrderNotFound:
            raise NotFoundError("Order", transaction_id)
        except StorageUnavailable as e:
            logger.error(f"Commit failed for {transaction_id}: {e}")
            raise UnavailableError("Order storage unavailable")

        logger.info(
            f"{transaction_id}: {from_status} -> {target} "
            f"(employee={employee_name}, role={role.value})"
        )

        # ── Audit (best-effort) ─────────────────────────────────────
        outcome = await self.recorder.record(
            order_id=transaction_id,
            action=edge.action,
            from_status=from_status,
            to_status=target,
            employee_name=employee_name,
            role=role,
            remarks=reason,
            timestamp=now,
        )

        return TransitionResult(
            outcome=COMMITTED,
            order=updated,
            event=outcome.event,
            warnings=[outcome.warning] if outcome.warning else [],
        )

    async def cancel_order(
        self,
        order,
        role,
        reason: str | None,
        employee_code: str | None = None,
    ) -> TransitionResult:
        """Administrative cancellation; a reason is mandatory."""
        return await self.request_transition(
            TransitionRequest(
                order=order,
                target=OrderStatus.CANCELLED.value,
                role=role,
                employee_code=employee_code,
                reason=reason,
            )
        )

    async def _resolve_employee(self, code: str, transaction_id: str) -> str:
        try:
            return await self.directory.resolve(code)
        except UnknownEmployeeCode:
            logger.warning(f"Rejected unknown employee code for {transaction_id}")
            raise InvalidEmployeeCodeError()
        except StorageUnavailable as e:
            logger.error(f"Employee directory unavailable: {e}")
            raise UnavailableError("Unable to verify employee")


def _append_line(note: str | None, line: str) -> str:
    if not note:
        return line
    return f"{note}\n{line}"
