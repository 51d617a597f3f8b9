from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.schemas.schemas import CamelModel, GeoPoint
from app.schemas.status_schema import RiderStatus
from app.utils.utils import to_naive_utc


class SlotSchema(CamelModel):
    start_time: datetime
    end_time: datetime
    booked: bool = False

    normalize_times = field_validator("start_time", "end_time")(to_naive_utc)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("slot end time must be after its start time")
        return self


class AvailabilitySchema(CamelModel):
    date: datetime
    slots: list[SlotSchema]

    normalize_times = field_validator("date")(to_naive_utc)


class RiderCreate(CamelModel):
    user_id: UUID
    phone: str = Field(..., min_length=1)
    capacity: int = Field(5, ge=1)


class RiderUpdate(CamelModel):
    """Every field optional; riders may only touch status and location."""

    phone: str | None = Field(None, min_length=1)
    status: RiderStatus | None = None
    location: GeoPoint | None = None
    capacity: int | None = Field(None, ge=1)
    availability: list[AvailabilitySchema] | None = None


class LocationUpdate(CamelModel):
    longitude: float = Field(..., ge=-180, le=180)
    latitude: float = Field(..., ge=-90, le=90)


class RiderStatusUpdate(CamelModel):
    status: RiderStatus


class AvailabilityUpdate(CamelModel):
    availability: list[AvailabilitySchema]


class UserSummary(CamelModel):
    id: UUID
    name: str
    email: str


class RatingsSchema(CamelModel):
    average: float = 0
    count: int = 0


class RiderResponse(CamelModel):
    id: UUID
    user: UserSummary
    phone: str
    status: RiderStatus
    location: GeoPoint
    current_orders: list[UUID]
    deliveries_completed: int
    ratings: RatingsSchema
    capacity: int
    availability: list[AvailabilitySchema]
    created_at: datetime
    updated_at: datetime


class NearbyRiderResponse(RiderResponse):
    distance: float = Field(..., description="Distance from the query point in metres")


class PaginatedRiderResponse(CamelModel):
    items: list[RiderResponse]
    total_pages: int
    current_page: int
    total: int
