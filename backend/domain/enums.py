"""
Domain enums shared by the workflow engine, intake, and persistence layers.

Values are the wire/persistence strings and must stay stable.
"""

from enum import Enum


class OrderStatus(str, Enum):
    WAITING = "Waiting"
    MIXING = "Mixing"
    SPRAYING = "Spraying"
    RE_MIXING = "Re-Mixing"
    READY = "Ready"
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"


class Category(str, Enum):
    NEW_MIX = "New Mix"
    MIX_MORE = "Mix More"
    COLOUR_CODE = "Colour Code"
    DETAILING = "Detailing"


class Role(str, Enum):
    ADMIN = "Admin"
    USER = "User"


class OrderType(str, Enum):
    PAID = "Paid"
    ORDER = "Order"


class PoType(str, Enum):
    NEXA = "Nexa"
    CARVELLO = "Carvello"


class AuditAction(str, Enum):
    ADVANCE = "advance"
    REVERT = "revert"
    CANCEL = "cancel"


class InputKind(str, Enum):
    """Inputs a caller may be asked for before a transition commits."""
    COLOUR_CODE = "colour_code"
    EMPLOYEE_CODE = "employee_code"
    REASON = "reason"
