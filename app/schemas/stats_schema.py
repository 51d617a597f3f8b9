from uuid import UUID

from pydantic import Field

from app.schemas.schemas import CamelModel
from app.schemas.status_schema import OrderStatus, RiderStatus


class OrderStatusCount(CamelModel):
    status: OrderStatus
    count: int


class RiderStatusCount(CamelModel):
    status: RiderStatus
    count: int


class OrderStatsResponse(CamelModel):
    """Dashboard order widgets"""

    total_orders: int = Field(default=0)
    active_orders: int = Field(default=0, description="pending, assigned, picked up or in transit")
    delivered_orders: int = Field(default=0)
    exception_orders: int = Field(default=0)
    today_orders: int = Field(default=0, description="Created since 00:00 UTC today")
    on_time_rate: float = Field(default=0, description="Percentage of delivered orders on or before estimate")
    orders_by_status: list[OrderStatusCount] = Field(default_factory=list)


class TopRiderStat(CamelModel):
    id: UUID
    name: str
    deliveries_completed: int


class RiderStatsResponse(CamelModel):
    """Dashboard rider widgets"""

    total_riders: int = Field(default=0)
    active_riders: int = Field(default=0)
    on_break_riders: int = Field(default=0)
    inactive_riders: int = Field(default=0)
    offline_riders: int = Field(default=0)
    top_riders: list[TopRiderStat] = Field(default_factory=list)
    riders_by_status: list[RiderStatusCount] = Field(default_factory=list)
