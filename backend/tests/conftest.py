"""
Pytest configuration and shared fixtures for Paint Queue tests.

Provides an in-memory SQLite database, an ASGI test client wired to it, and
in-memory fakes for the workflow engine's collaborators.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import db_models  # noqa: F401  (registers tables on Base.metadata)
from database import Base, get_db
from deps import get_session_factory
from domain.ports import QueueCounts
from exceptions import OrderNotFound, StaleOrderState, StorageUnavailable, UnknownEmployeeCode
from middleware.rate_limit import get_limiter

FIXED_NOW = datetime(2026, 10, 19, 9, 30, 0)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory bound to a fresh in-memory SQLite database.

    Uses StaticPool so every session shares the one in-memory connection.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def drop_order_tables(session_factory):
    """Remove the order tables so every later read fails like a lost database."""
    async with session_factory() as session:
        await session.execute(text("DROP TABLE status_events"))
        await session.execute(text("DROP TABLE orders"))
        await session.commit()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    ASGI client with get_db and the audit session factory pointed at the test DB.

    The app lifespan (startup DB init, queue monitor) is not run.
    """
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    get_limiter().reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    get_limiter().reset()


# ── Test Data Fixtures ────────────────────────────────────────────────


def make_order(**overrides):
    """Unsaved Order with sensible defaults for the Waiting stage."""
    from db_models import Order

    fields = dict(
        transaction_id="19102026-ORD-4821",
        customer_name="Ravi Kumar",
        client_contact="9876543210",
        paint_type="Swift 2019 bonnet",
        paint_quantity="500ml",
        category="New Mix",
        colour_code="Pending",
        current_status="Waiting",
        assigned_employee="Unassigned",
        order_type="Order",
        start_time=FIXED_NOW,
        status_started_at=FIXED_NOW,
    )
    fields.update(overrides)
    return Order(**fields)


@pytest_asyncio.fixture
async def sample_employee(db_session: AsyncSession):
    from db_models import Employee

    employee = Employee(code="1234", employee_name="Anita Sharma", role="Mixer")
    db_session.add(employee)
    await db_session.commit()
    await db_session.refresh(employee)
    return employee


@pytest_asyncio.fixture
async def sample_order(db_session: AsyncSession):
    order = make_order()
    db_session.add(order)
    await db_session.commit()
    await db_session.refresh(order)
    return order


# ── In-memory Collaborators ───────────────────────────────────────────


class FakeOrder:
    """Plain stand-in for the Order row, enough for the engine and to_dict()."""

    def __init__(self, **fields):
        self.transaction_id = fields.get("transaction_id", "19102026-PO-1234")
        self.category = fields.get("category", "New Mix")
        self.colour_code = fields.get("colour_code", "Pending")
        self.current_status = fields.get("current_status", "Waiting")
        self.assigned_employee = fields.get("assigned_employee", "Unassigned")
        self.note = fields.get("note")
        self.status_started_at = fields.get("status_started_at", FIXED_NOW)

    def to_dict(self) -> dict:
        return dict(vars(self))


class FakeRepository:
    """Dict-backed OrderRepository honouring the conditional commit contract."""

    def __init__(self, *orders, fail_with: Exception | None = None):
        self.orders = {o.transaction_id: o for o in orders}
        self.commits: list[tuple[str, str, dict]] = []
        self.fail_with = fail_with

    async def list_active(self):
        return [o for o in self.orders.values() if o.current_status not in ("Complete", "Cancelled")]

    async def get(self, transaction_id):
        if transaction_id not in self.orders:
            raise OrderNotFound(transaction_id)
        return self.orders[transaction_id]

    async def commit(self, transaction_id, expected_status, changes):
        self.commits.append((transaction_id, expected_status, dict(changes)))
        if self.fail_with is not None:
            raise self.fail_with
        order = await self.get(transaction_id)
        if order.current_status != expected_status:
            raise StaleOrderState(transaction_id)
        stored = FakeOrder(**{**vars(order), **changes})
        self.orders[transaction_id] = stored
        return stored

    async def queue_counts(self):
        return QueueCounts()


class FakeDirectory:
    def __init__(self, codes: dict[str, str] | None = None, unavailable: bool = False):
        self.codes = codes if codes is not None else {"1234": "Anita Sharma"}
        self.unavailable = unavailable
        self.lookups: list[str] = []

    async def resolve(self, code):
        self.lookups.append(code)
        if self.unavailable:
            raise StorageUnavailable("directory down")
        code = (code or "").strip()
        if code not in self.codes:
            raise UnknownEmployeeCode(code)
        return self.codes[code]


class FakeAuditStore:
    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def append(self, event):
        if self.fail:
            raise StorageUnavailable("audit table locked")
        self.events.append(event)


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def fake_audit_store():
    return FakeAuditStore()
