"""
Collaborator contracts consumed by the workflow engine.

Adapters live in services/ (SQLAlchemy repository and audit store, SQL or HTTP
employee directory). Tests substitute in-memory fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class QueueCounts:
    """Population counts used for queue depth and dashboards."""
    waiting: int = 0
    active: int = 0
    ready: int = 0

    @property
    def depth_for_new_order(self) -> int:
        """Position a newly queued order would take (its own slot included)."""
        return self.waiting + self.active + 1


class OrderRepository(Protocol):
    async def list_active(self) -> list[Any]: ...

    async def get(self, transaction_id: str) -> Any: ...

    async def commit(self, transaction_id: str, expected_status: str, changes: dict) -> Any: ...

    async def queue_counts(self) -> QueueCounts: ...


class EmployeeDirectory(Protocol):
    async def resolve(self, code: str) -> str: ...


class AuditStore(Protocol):
    async def append(self, event: Any) -> None: ...
