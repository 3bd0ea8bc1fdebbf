"""
Shared FastAPI dependencies.

Routers import the DB session, caller role, and a request-scoped workflow
engine from here.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import async_session, get_db
from domain.enums import Role
from domain.errors import ValidationError
from services.audit_service import AuditRecorder, SqlAuditStore
from services.employee_directory import build_directory
from services.order_repository import SqlOrderRepository
from services.workflow_engine import WorkflowEngine


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def get_role(x_user_role: str = Header("User", alias="X-User-Role")) -> Role:
    """
    Caller role, passed explicitly on every request.

    There is no session layer; the front end sends the role it is operating as.
    """
    try:
        return Role(x_user_role.strip().capitalize())
    except ValueError:
        raise ValidationError(f"Unknown role: {x_user_role}", field="X-User-Role")


def get_session_factory() -> async_sessionmaker:
    """Session factory for writes that must not share the request transaction (audit)."""
    return async_session


def get_repository(db: AsyncSession = Depends(get_db)) -> SqlOrderRepository:
    return SqlOrderRepository(db)


def get_workflow_engine(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> WorkflowEngine:
    return WorkflowEngine(
        repository=SqlOrderRepository(db),
        directory=build_directory(db),
        recorder=AuditRecorder(SqlAuditStore(session_factory)),
    )
