from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import ensure_rider_access, filter_rider_update
from app.config.config import settings
from app.models.models import Order, Rider, User
from app.schemas.order_schema import PaginatedOrderResponse
from app.schemas.rider_schema import (
    AvailabilitySchema,
    AvailabilityUpdate,
    LocationUpdate,
    NearbyRiderResponse,
    PaginatedRiderResponse,
    RatingsSchema,
    RiderCreate,
    RiderResponse,
    RiderUpdate,
    UserSummary,
)
from app.schemas.schemas import GeoPoint, MessageResponse
from app.schemas.status_schema import (
    ACTIVE_ORDER_STATUSES,
    OrderStatus,
    RiderStatus,
    UserRole,
)
from app.services.assignment_service import get_rider_or_404
from app.services.order_service import format_order_response
from app.utils.errors import Conflict, InvalidState, NotFound, ValidationFailed
from app.utils.logger_config import setup_logger
from app.utils.utils import bounding_box, haversine_distance, paginate

logger = setup_logger()


def format_rider_response(rider: Rider) -> RiderResponse:
    return RiderResponse(
        id=rider.id,
        user=UserSummary.model_validate(rider.user),
        phone=rider.phone,
        status=rider.status,
        location=GeoPoint(coordinates=[rider.longitude, rider.latitude]),
        current_orders=sorted(order.id for order in rider.current_orders),
        deliveries_completed=rider.deliveries_completed,
        ratings=RatingsSchema(average=rider.rating_average, count=rider.rating_count),
        capacity=rider.capacity,
        availability=[AvailabilitySchema.model_validate(day) for day in rider.availability or []],
        created_at=rider.created_at,
        updated_at=rider.updated_at,
    )


async def save_rider(db: AsyncSession, rider: Rider) -> Rider:
    await db.commit()
    await db.refresh(rider)
    return rider


async def create_rider(db: AsyncSession, data: RiderCreate) -> RiderResponse:
    user = await db.get(User, data.user_id)
    if not user:
        raise NotFound("User not found")

    if user.role != UserRole.RIDER:
        raise ValidationFailed("User must have rider role")

    existing = await db.execute(select(Rider.id).where(Rider.user_id == user.id))
    if existing.first():
        raise Conflict("Rider profile already exists for this user")

    rider = Rider(
        user=user,
        phone=data.phone,
        capacity=data.capacity,
        current_orders=set(),
        availability=[],
    )
    db.add(rider)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Rider profile already exists for this user")

    await db.refresh(rider)

    logger.info(f"Rider profile {rider.id} created for user {user.email}")

    return format_rider_response(rider)


async def get_riders(
    db: AsyncSession,
    status: Optional[RiderStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> PaginatedRiderResponse:
    stmt = select(Rider).order_by(Rider.created_at.desc())
    if status:
        stmt = stmt.where(Rider.status == status)

    result = await paginate(db, stmt, page, limit)
    result["items"] = [format_rider_response(rider) for rider in result["items"]]

    return PaginatedRiderResponse(**result)


async def get_rider(
    db: AsyncSession, current_user: User, rider_id: UUID
) -> RiderResponse:
    rider = await get_rider_or_404(db, rider_id)
    await ensure_rider_access(db, current_user, rider.id)
    return format_rider_response(rider)


async def update_rider(
    db: AsyncSession, current_user: User, rider_id: UUID, data: RiderUpdate
) -> RiderResponse:
    rider = await get_rider_or_404(db, rider_id, for_update=True)
    await ensure_rider_access(db, current_user, rider.id)

    updates = filter_rider_update(
        current_user.role, data.model_dump(exclude_unset=True, exclude_none=True)
    )

    location = updates.pop("location", None)
    if location is not None:
        rider.longitude, rider.latitude = location["coordinates"]

    availability = updates.pop("availability", None)
    if availability is not None:
        rider.availability = AvailabilityUpdate(availability=availability).model_dump(
            mode="json", by_alias=False
        )["availability"]

    for key, value in updates.items():
        setattr(rider, key, value)

    rider = await save_rider(db, rider)

    logger.info(f"Rider {rider.id} updated by {current_user.email}: {sorted(data.model_fields_set)}")

    return format_rider_response(rider)


async def delete_rider(db: AsyncSession, rider_id: UUID) -> MessageResponse:
    rider = await get_rider_or_404(db, rider_id, for_update=True)

    active_orders = (
        await db.execute(
            select(func.count(Order.id)).where(
                Order.rider_id == rider.id,
                Order.status.in_(ACTIVE_ORDER_STATUSES),
            )
        )
    ).scalar_one()

    if active_orders > 0:
        raise InvalidState(
            "Cannot delete rider with active orders. Reassign or complete orders first."
        )

    # finished orders keep their history but lose the rider reference
    await db.execute(
        update(Order).where(Order.rider_id == rider.id).values(rider_id=None)
    )
    await db.delete(rider)
    await db.commit()

    logger.info(f"Rider profile {rider_id} removed")

    return MessageResponse(message="Rider profile removed")


async def update_rider_location(
    db: AsyncSession, current_user: User, rider_id: UUID, data: LocationUpdate
) -> RiderResponse:
    rider = await get_rider_or_404(db, rider_id, for_update=True)
    await ensure_rider_access(db, current_user, rider.id)

    rider.longitude = data.longitude
    rider.latitude = data.latitude

    rider = await save_rider(db, rider)
    return format_rider_response(rider)


async def get_rider_orders(
    db: AsyncSession,
    current_user: User,
    rider_id: UUID,
    status: Optional[OrderStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> PaginatedOrderResponse:
    rider = await get_rider_or_404(db, rider_id)
    await ensure_rider_access(db, current_user, rider.id)

    stmt = (
        select(Order)
        .where(Order.rider_id == rider.id)
        .order_by(Order.created_at.desc())
    )
    if status:
        stmt = stmt.where(Order.status == status)

    result = await paginate(db, stmt, page, limit)
    result["items"] = [format_order_response(order) for order in result["items"]]

    return PaginatedOrderResponse(**result)


async def update_rider_status(
    db: AsyncSession, current_user: User, rider_id: UUID, status: RiderStatus
) -> RiderResponse:
    rider = await get_rider_or_404(db, rider_id, for_update=True)
    await ensure_rider_access(db, current_user, rider.id)

    rider.status = status

    rider = await save_rider(db, rider)

    logger.info(f"Rider {rider.id} is now {status.value}")

    return format_rider_response(rider)


async def update_rider_availability(
    db: AsyncSession, current_user: User, rider_id: UUID, data: AvailabilityUpdate
) -> RiderResponse:
    rider = await get_rider_or_404(db, rider_id, for_update=True)
    await ensure_rider_access(db, current_user, rider.id)

    rider.availability = data.model_dump(mode="json", by_alias=False)["availability"]

    rider = await save_rider(db, rider)
    return format_rider_response(rider)


async def get_nearby_riders(
    db: AsyncSession,
    longitude: float,
    latitude: float,
    max_distance: Optional[float] = None,
) -> list[NearbyRiderResponse]:
    """
    Active riders within `max_distance` metres of the point, nearest first.

    A bounding box narrows the candidates in SQL; exact great-circle
    distances are computed for what remains.
    """
    if max_distance is None:
        max_distance = settings.NEARBY_DEFAULT_DISTANCE

    min_lng, max_lng, min_lat, max_lat = bounding_box(longitude, latitude, max_distance)

    stmt = select(Rider).where(
        Rider.status == RiderStatus.ACTIVE,
        Rider.latitude.between(min_lat, max_lat),
    )
    # Boxes that cross the antimeridian are left to the exact check
    if min_lng >= -180 and max_lng <= 180:
        stmt = stmt.where(Rider.longitude.between(min_lng, max_lng))

    result = await db.execute(stmt)

    candidates = []
    for rider in result.scalars().all():
        distance = haversine_distance(latitude, longitude, rider.latitude, rider.longitude)
        if distance <= max_distance:
            candidates.append((distance, rider))

    candidates.sort(key=lambda pair: pair[0])

    return [
        NearbyRiderResponse(
            **format_rider_response(rider).model_dump(), distance=round(distance, 2)
        )
        for distance, rider in candidates[: settings.NEARBY_RESULT_LIMIT]
    ]
