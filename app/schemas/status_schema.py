from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    LOGISTICS_MANAGER = "logistics_manager"
    OPERATIONS_MANAGER = "operations_manager"
    RIDER = "rider"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    EXCEPTION = "exception"


class OrderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ExceptionType(str, Enum):
    CUSTOMER_UNAVAILABLE = "customer_unavailable"
    ADDRESS_ISSUE = "address_issue"
    PACKAGE_DAMAGED = "package_damaged"
    RIDER_DELAYED = "rider_delayed"
    OTHER = "other"


class RiderStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_BREAK = "on_break"
    OFFLINE = "offline"


# Orders a rider is still working on
ACTIVE_ORDER_STATUSES = frozenset(
    {OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT}
)

# Orders counted as "active" on the dashboard
OPEN_ORDER_STATUSES = ACTIVE_ORDER_STATUSES | {OrderStatus.PENDING}

# Statuses that only make sense with a rider on the order
RIDER_BOUND_STATUSES = ACTIVE_ORDER_STATUSES | {OrderStatus.DELIVERED}
