"""
Pydantic models for request validation.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ApiBase(BaseModel):
    """Shared base: allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Intake ──────────────────────────────────────────────────────────

class OrderItemRequest(ApiBase):
    """One order line of an intake submission."""
    category: str = Field(default="New Mix", description="New Mix | Mix More | Colour Code | Detailing")
    paint_type: str = Field(..., alias="paintType", description="Car details")
    colour_code: Optional[str] = Field(
        default=None,
        alias="colourCode",
        description="Required unless category is New Mix (stored as 'Pending')",
    )
    paint_quantity: str = Field(..., alias="paintQuantity")


class CreateOrdersRequest(ApiBase):
    """Place 1-10 orders for one customer."""
    order_type: str = Field(..., alias="orderType", description="Paid | Order")
    po_type: Optional[str] = Field(default=None, alias="poType", description="Nexa | Carvello (Paid only)")
    trans_suffix: Optional[str] = Field(
        default=None,
        alias="transSuffix",
        description="4-digit till transaction number (Paid only)",
    )
    customer_name: str = Field(..., alias="customerName", max_length=200)
    client_contact: str = Field(..., alias="clientContact", description="10-digit phone number")
    orders: List[OrderItemRequest] = Field(..., min_length=1)


# ── Workflow ────────────────────────────────────────────────────────

class StatusChangeRequest(ApiBase):
    """Request a stage change; re-send with the inputs a 202 response asked for."""
    status: str = Field(..., description="Target status")
    colour_code: Optional[str] = Field(default=None, alias="colourCode")
    employee_code: Optional[str] = Field(default=None, alias="employeeCode")
    reason: Optional[str] = Field(default=None, max_length=1000)


class CancelOrderRequest(ApiBase):
    reason: Optional[str] = Field(default=None, max_length=1000)
    employee_code: Optional[str] = Field(default=None, alias="employeeCode")


class NoteRequest(ApiBase):
    note: str = Field(..., min_length=1, max_length=2000)
