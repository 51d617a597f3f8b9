from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.schemas import CamelModel, GeoPoint
from app.schemas.status_schema import (
    ExceptionType,
    OrderPriority,
    OrderStatus,
)
from app.utils.utils import to_naive_utc


class CustomerSchema(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class CustomerUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    phone: str | None = Field(None, min_length=1)
    address: str | None = Field(None, min_length=1)


class PickupCreate(CamelModel):
    location: GeoPoint
    address: str = Field(..., min_length=1)
    scheduled_time: datetime

    normalize_times = field_validator("scheduled_time")(to_naive_utc)


class PickupUpdate(CamelModel):
    location: GeoPoint | None = None
    address: str | None = Field(None, min_length=1)
    scheduled_time: datetime | None = None

    normalize_times = field_validator("scheduled_time")(to_naive_utc)


class DeliveryCreate(CamelModel):
    location: GeoPoint
    address: str = Field(..., min_length=1)
    scheduled_time: datetime
    estimated_time: datetime

    normalize_times = field_validator("scheduled_time", "estimated_time")(to_naive_utc)


class DeliveryUpdate(CamelModel):
    location: GeoPoint | None = None
    address: str | None = Field(None, min_length=1)
    scheduled_time: datetime | None = None
    estimated_time: datetime | None = None

    normalize_times = field_validator("scheduled_time", "estimated_time")(to_naive_utc)


class OrderItemSchema(CamelModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    weight: float | None = Field(None, ge=0)


class FeedbackSchema(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    submitted_at: datetime | None = None


class ExceptionCreate(CamelModel):
    type: ExceptionType
    description: str = Field(..., min_length=1)


class ExceptionUpdate(CamelModel):
    type: ExceptionType | None = None
    description: str | None = None


class OrderCreate(CamelModel):
    order_number: str | None = Field(None, min_length=1, max_length=30)
    customer: CustomerSchema
    pickup: PickupCreate
    delivery: DeliveryCreate
    items: list[OrderItemSchema] = Field(..., min_length=1)
    total_weight: float | None = Field(None, ge=0)
    priority: OrderPriority = OrderPriority.MEDIUM
    notes: str | None = None


class OrderUpdate(CamelModel):
    """Every field optional; role filtering decides which ones are applied."""

    order_number: str | None = Field(None, min_length=1, max_length=30)
    customer: CustomerUpdate | None = None
    pickup: PickupUpdate | None = None
    delivery: DeliveryUpdate | None = None
    rider: UUID | None = None
    status: OrderStatus | None = None
    exception: ExceptionUpdate | None = None
    items: list[OrderItemSchema] | None = Field(None, min_length=1)
    total_weight: float | None = Field(None, ge=0)
    priority: OrderPriority | None = None
    feedback: FeedbackSchema | None = None
    notes: str | None = None


class AssignOrderSchema(CamelModel):
    rider_id: UUID


class ResolveExceptionSchema(CamelModel):
    resolution: str = Field(..., min_length=1)
    status: OrderStatus

    @field_validator("status")
    @classmethod
    def not_exception(cls, value: OrderStatus) -> OrderStatus:
        if value == OrderStatus.EXCEPTION:
            raise ValueError("status must be a non-exception status")
        return value


class PickupResponse(CamelModel):
    location: GeoPoint
    address: str
    scheduled_time: datetime
    completed_time: datetime | None = None


class DeliveryResponse(CamelModel):
    location: GeoPoint
    address: str
    scheduled_time: datetime
    estimated_time: datetime
    actual_time: datetime | None = None


class ExceptionResponse(CamelModel):
    type: ExceptionType
    description: str
    reported_at: datetime
    resolved_at: datetime | None = None
    resolution: str | None = None


class OrderResponse(CamelModel):
    id: UUID
    order_number: str
    customer: CustomerSchema
    pickup: PickupResponse
    delivery: DeliveryResponse
    rider: UUID | None = None
    status: OrderStatus
    exception: ExceptionResponse | None = None
    items: list[OrderItemSchema]
    total_weight: float | None = None
    priority: OrderPriority
    created_by: UUID
    feedback: FeedbackSchema | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class PaginatedOrderResponse(CamelModel):
    items: list[OrderResponse]
    total_pages: int
    current_page: int
    total: int
