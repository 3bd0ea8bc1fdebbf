"""
SQLAlchemy ORM models for the Paint Queue service.

Tables:
    orders        : paint-mixing orders and their current pipeline stage
    status_events : append-only audit trail, one row per committed transition
    employees     : read-only roster used to verify employee codes
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from domain.constants import PENDING_COLOUR_CODE, UNASSIGNED


class Order(Base):
    """A paint-mixing order moving through Waiting → … → Complete."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(40), unique=True, nullable=False, index=True)  # e.g. 19102026-PO-1234
    customer_name = Column(String(200), nullable=False)
    client_contact = Column(String(10), nullable=False, index=True)
    paint_type = Column(String(200), nullable=False)  # car details
    paint_quantity = Column(String(10), nullable=False)
    category = Column(String(20), nullable=False)  # "New Mix" | "Mix More" | "Colour Code" | "Detailing"
    colour_code = Column(String(50), nullable=True, default=PENDING_COLOUR_CODE)
    current_status = Column(String(20), nullable=False, default="Waiting", index=True)
    assigned_employee = Column(String(200), nullable=False, default=UNASSIGNED)
    order_type = Column(String(10), nullable=False)  # "Paid" | "Order"
    po_type = Column(String(20), nullable=True)  # "Nexa" | "Carvello", paid orders only
    note = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    status_started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    events = relationship(
        "StatusEvent", back_populates="order", lazy="select", order_by="StatusEvent.id"
    )

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "customer_name": self.customer_name,
            "client_contact": self.client_contact,
            "paint_type": self.paint_type,
            "paint_quantity": self.paint_quantity,
            "category": self.category,
            "colour_code": self.colour_code,
            "current_status": self.current_status,
            "assigned_employee": self.assigned_employee,
            "order_type": self.order_type,
            "po_type": self.po_type,
            "note": self.note,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "status_started_at": self.status_started_at.isoformat() if self.status_started_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class StatusEvent(Base):
    """Immutable audit record of one committed status transition."""
    __tablename__ = "status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(40), ForeignKey("orders.transaction_id"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # "advance" | "revert" | "cancel"
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    employee_name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False)
    remarks = Column(Text, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    order = relationship("Order", back_populates="events")

    __table_args__ = (
        # For per-order trail reconstruction in commit order
        Index("ix_status_events_order_timestamp", "order_id", "timestamp"),
    )

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "action": self.action,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "employee_name": self.employee_name,
            "role": self.role,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "remarks": self.remarks,
        }


class Employee(Base):
    """Shop staff who may verify stage changes with their code."""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    employee_name = Column(String(200), nullable=False)
    role = Column(String(50), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
