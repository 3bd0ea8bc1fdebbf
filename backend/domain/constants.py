"""
Domain constants used across services/routers.
"""

from domain.enums import OrderStatus

# colour_code sentinel for New Mix orders whose formula is not yet known
PENDING_COLOUR_CODE = "Pending"

# assigned_employee before any verified operator touched the order
UNASSIGNED = "Unassigned"

# Stages counted as "in production" for queue depth
ACTIVE_STATUSES = frozenset({
    OrderStatus.MIXING,
    OrderStatus.SPRAYING,
    OrderStatus.RE_MIXING,
})

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETE, OrderStatus.CANCELLED})

# Intake
PAINT_QUANTITIES = (
    "250ml", "500ml", "750ml", "1L", "1.25L", "1.5L",
    "2L", "2.5L", "3L", "4L", "5L", "10L",
)
PAID_ID_MARKER = "PO"
ORDER_ID_MARKER = "ORD"

SEARCH_SORT_FIELDS = (
    "transaction_id",
    "customer_name",
    "client_contact",
    "start_time",
    "current_status",
)
