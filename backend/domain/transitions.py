"""
Order pipeline adjacency.

    Waiting → Mixing → Spraying ⇄ Re-Mixing
                       Spraying → Ready → Complete
    Ready → Spraying | Re-Mixing            (revert, Admin + reason)
    any non-terminal → Cancelled            (Admin + reason)

Pure data; no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass

from domain.constants import TERMINAL_STATUSES
from domain.enums import AuditAction, OrderStatus


@dataclass(frozen=True)
class Edge:
    from_status: OrderStatus
    to_status: OrderStatus
    action: AuditAction
    admin_only: bool = False
    needs_reason: bool = False


S = OrderStatus

_FORWARD = [
    Edge(S.WAITING, S.MIXING, AuditAction.ADVANCE),
    Edge(S.MIXING, S.SPRAYING, AuditAction.ADVANCE),
    Edge(S.SPRAYING, S.RE_MIXING, AuditAction.ADVANCE),
    Edge(S.RE_MIXING, S.SPRAYING, AuditAction.ADVANCE),
    Edge(S.SPRAYING, S.READY, AuditAction.ADVANCE),
    Edge(S.READY, S.COMPLETE, AuditAction.ADVANCE, admin_only=True),
]

_REVERT = [
    Edge(S.READY, S.SPRAYING, AuditAction.REVERT, admin_only=True, needs_reason=True),
    Edge(S.READY, S.RE_MIXING, AuditAction.REVERT, admin_only=True, needs_reason=True),
]

_CANCEL = [
    Edge(s, S.CANCELLED, AuditAction.CANCEL, admin_only=True, needs_reason=True)
    for s in OrderStatus
    if s not in TERMINAL_STATUSES
]

EDGES: dict[tuple[OrderStatus, OrderStatus], Edge] = {
    (e.from_status, e.to_status): e for e in (*_FORWARD, *_REVERT, *_CANCEL)
}


def find_edge(from_status, to_status) -> Edge | None:
    """Return the edge between two statuses, or None when unreachable."""
    try:
        key = (OrderStatus(from_status), OrderStatus(to_status))
    except ValueError:
        return None
    return EDGES.get(key)
