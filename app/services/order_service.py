from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import (
    ensure_order_access,
    filter_order_update,
    get_own_rider_or_404,
)
from app.config.config import settings
from app.models.models import Counter, Order, OrderException, OrderItem, User
from app.schemas.order_schema import (
    CustomerSchema,
    DeliveryResponse,
    ExceptionCreate,
    ExceptionResponse,
    FeedbackSchema,
    OrderCreate,
    OrderItemSchema,
    OrderResponse,
    OrderUpdate,
    PaginatedOrderResponse,
    PickupResponse,
    ResolveExceptionSchema,
)
from app.schemas.schemas import GeoPoint, MessageResponse
from app.schemas.status_schema import (
    ACTIVE_ORDER_STATUSES,
    OrderPriority,
    OrderStatus,
    RIDER_BOUND_STATUSES,
    RiderStatus,
    UserRole,
)
from app.services import assignment_service
from app.utils.errors import Conflict, InvalidState, NotFound, ValidationFailed
from app.utils.logger_config import setup_logger
from app.utils.utils import paginate, utcnow

logger = setup_logger()

ORDER_NUMBER_COUNTER = "order_number"

# Exception is left through resolve_exception only; delivered and cancelled are final
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.ASSIGNED, OrderStatus.CANCELLED, OrderStatus.EXCEPTION}
    ),
    OrderStatus.ASSIGNED: frozenset(
        {OrderStatus.PICKED_UP, OrderStatus.CANCELLED, OrderStatus.EXCEPTION}
    ),
    OrderStatus.PICKED_UP: frozenset(
        {
            OrderStatus.IN_TRANSIT,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.EXCEPTION,
        }
    ),
    OrderStatus.IN_TRANSIT: frozenset(
        {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.EXCEPTION}
    ),
    OrderStatus.EXCEPTION: frozenset(),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

ASSIGNABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.ASSIGNED})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS[current]


def format_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer=CustomerSchema(
            name=order.customer_name,
            phone=order.customer_phone,
            address=order.customer_address,
        ),
        pickup=PickupResponse(
            location=GeoPoint(
                coordinates=[order.pickup_longitude, order.pickup_latitude]
            ),
            address=order.pickup_address,
            scheduled_time=order.pickup_scheduled_time,
            completed_time=order.pickup_completed_time,
        ),
        delivery=DeliveryResponse(
            location=GeoPoint(
                coordinates=[order.delivery_longitude, order.delivery_latitude]
            ),
            address=order.delivery_address,
            scheduled_time=order.delivery_scheduled_time,
            estimated_time=order.delivery_estimated_time,
            actual_time=order.delivery_actual_time,
        ),
        rider=order.rider_id,
        status=order.status,
        exception=(
            ExceptionResponse.model_validate(order.exception)
            if order.exception
            else None
        ),
        items=[OrderItemSchema.model_validate(item) for item in order.items],
        total_weight=order.total_weight,
        priority=order.priority,
        created_by=order.created_by_id,
        feedback=FeedbackSchema.model_validate(order.feedback) if order.feedback else None,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


async def get_order_or_404(
    db: AsyncSession, order_id: UUID, for_update: bool = False
) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    order = result.scalar_one_or_none()

    if not order:
        raise NotFound("Order not found")

    return order


async def draw_order_counter(db: AsyncSession) -> int:
    """
    Bump the order number counter and return its new value.

    The counter row is bumped with a single UPDATE ... RETURNING so two
    concurrent creations never see the same value. The first time it is used
    the row is seeded from the number of orders already stored.
    """
    result = await db.execute(
        update(Counter)
        .where(Counter.name == ORDER_NUMBER_COUNTER)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one_or_none()

    if value is None:
        total = (await db.execute(select(func.count(Order.id)))).scalar_one()
        value = total + 1
        db.add(Counter(name=ORDER_NUMBER_COUNTER, value=value))
        await db.flush()

    return value


async def order_number_taken(
    db: AsyncSession, order_number: str, order_id: Optional[UUID] = None
) -> bool:
    stmt = select(Order.id).where(Order.order_number == order_number)
    if order_id is not None:
        stmt = stmt.where(Order.id != order_id)
    return (await db.execute(stmt)).first() is not None


async def next_order_number(db: AsyncSession) -> str:
    # Numbers already stored, client supplied ones included, are skipped and
    # the counter moves past them in the same transaction
    while True:
        value = await draw_order_counter(db)
        order_number = f"{settings.ORDER_NUMBER_PREFIX}{value:04d}"
        if not await order_number_taken(db, order_number):
            return order_number


async def ensure_order_number_free(
    db: AsyncSession, order_number: str, order_id: Optional[UUID] = None
) -> None:
    if await order_number_taken(db, order_number, order_id):
        raise Conflict(f"Order number {order_number} already exists")


async def commit_order(db: AsyncSession, order: Order) -> Order:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Integrity error saving order: {e.orig}")
        raise Conflict("Order conflicts with an existing record")

    await db.refresh(order)
    return order


def attach_exception(order: Order, data: Optional[dict]) -> None:
    if not data or not data.get("type") or not data.get("description"):
        raise ValidationFailed("Exception type and description are required")

    now = utcnow()
    # Reuse the row so the one-per-order constraint never sees two at once
    if order.exception is not None:
        order.exception.type = data["type"]
        order.exception.description = data["description"]
        order.exception.reported_at = now
        order.exception.resolved_at = None
        order.exception.resolution = None
    else:
        order.exception = OrderException(
            type=data["type"], description=data["description"], reported_at=now
        )


def transition_order(
    order: Order,
    target: OrderStatus,
    exception_data: Optional[dict] = None,
    resolving: bool = False,
) -> None:
    """
    Move `order` to `target` and apply the side effects of entering it.

    Transitions follow ORDER_TRANSITIONS; `resolving` is set by exception
    resolution, which may leave the exception status for any other status.
    """
    current = order.status

    if target == current and target != OrderStatus.EXCEPTION:
        return

    if not resolving and not can_transition(current, target):
        raise InvalidState(
            f"Cannot change order status from {current.value} to {target.value}"
        )

    if target in RIDER_BOUND_STATUSES and order.rider is None:
        raise InvalidState(f"Order must have a rider to be {target.value}")

    now = utcnow()

    if target == OrderStatus.PICKED_UP:
        order.pickup_completed_time = now
    elif target == OrderStatus.DELIVERED:
        order.delivery_actual_time = now
        assignment_service.record_delivery(order.rider, order)
    elif target == OrderStatus.CANCELLED:
        assignment_service.release_order(order.rider, order)
    elif target == OrderStatus.PENDING:
        # back in the pool: pending orders carry no rider
        assignment_service.move_order(order, None)
    elif target == OrderStatus.EXCEPTION:
        attach_exception(order, exception_data)

    if target in ACTIVE_ORDER_STATUSES:
        assignment_service.hold_order(order.rider, order)

    order.status = target


def check_rider_binding(order: Order) -> None:
    """Riders belong to assigned and later orders only; pending orders carry none."""
    if order.status in RIDER_BOUND_STATUSES and order.rider is None:
        raise InvalidState(f"Order must have a rider to be {order.status.value}")
    if order.status == OrderStatus.PENDING and order.rider is not None:
        raise InvalidState("Pending orders cannot have a rider, assign the order instead")


async def create_order(
    db: AsyncSession, current_user: User, data: OrderCreate
) -> OrderResponse:
    if data.order_number:
        await ensure_order_number_free(db, data.order_number)
        order_number = data.order_number
    else:
        order_number = await next_order_number(db)

    order = Order(
        order_number=order_number,
        customer_name=data.customer.name,
        customer_phone=data.customer.phone,
        customer_address=data.customer.address,
        pickup_longitude=data.pickup.location.longitude,
        pickup_latitude=data.pickup.location.latitude,
        pickup_address=data.pickup.address,
        pickup_scheduled_time=data.pickup.scheduled_time,
        delivery_longitude=data.delivery.location.longitude,
        delivery_latitude=data.delivery.location.latitude,
        delivery_address=data.delivery.address,
        delivery_scheduled_time=data.delivery.scheduled_time,
        delivery_estimated_time=data.delivery.estimated_time,
        status=OrderStatus.PENDING,
        priority=data.priority,
        total_weight=data.total_weight,
        notes=data.notes,
        created_by_id=current_user.id,
        items=[
            OrderItem(position=index, **item.model_dump())
            for index, item in enumerate(data.items)
        ],
    )
    db.add(order)
    order = await commit_order(db, order)

    logger.info(f"Order {order.order_number} created by {current_user.email}")

    return format_order_response(order)


async def get_orders(
    db: AsyncSession,
    current_user: User,
    status: Optional[OrderStatus] = None,
    rider: Optional[UUID] = None,
    priority: Optional[OrderPriority] = None,
    page: int = 1,
    limit: int = 10,
) -> PaginatedOrderResponse:
    stmt = select(Order).order_by(Order.created_at.desc())

    if status:
        stmt = stmt.where(Order.status == status)
    if rider:
        stmt = stmt.where(Order.rider_id == rider)
    if priority:
        stmt = stmt.where(Order.priority == priority)

    # Riders only ever see their own orders
    if current_user.role == UserRole.RIDER:
        own = await get_own_rider_or_404(db, current_user)
        stmt = stmt.where(Order.rider_id == own.id)

    result = await paginate(db, stmt, page, limit)
    result["items"] = [format_order_response(order) for order in result["items"]]

    return PaginatedOrderResponse(**result)


async def get_order(
    db: AsyncSession, current_user: User, order_id: UUID
) -> OrderResponse:
    order = await get_order_or_404(db, order_id)
    await ensure_order_access(db, current_user, order)
    return format_order_response(order)


def apply_prefixed_fields(order: Order, prefix: str, values: dict) -> None:
    location = values.pop("location", None)
    if location is not None:
        longitude, latitude = location["coordinates"]
        setattr(order, f"{prefix}_longitude", longitude)
        setattr(order, f"{prefix}_latitude", latitude)
    for key, value in values.items():
        if value is not None:
            setattr(order, f"{prefix}_{key}", value)


async def update_order(
    db: AsyncSession, current_user: User, order_id: UUID, data: OrderUpdate
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, for_update=True)
    await ensure_order_access(db, current_user, order)

    updates = filter_order_update(
        current_user.role, data.model_dump(exclude_unset=True)
    )

    if "order_number" in updates and updates["order_number"] != order.order_number:
        await ensure_order_number_free(db, updates["order_number"], order.id)
        order.order_number = updates["order_number"]

    if updates.get("customer"):
        apply_prefixed_fields(order, "customer", dict(updates["customer"]))
    if updates.get("pickup"):
        apply_prefixed_fields(order, "pickup", dict(updates["pickup"]))
    if updates.get("delivery"):
        apply_prefixed_fields(order, "delivery", dict(updates["delivery"]))

    if updates.get("items"):
        order.items = [
            OrderItem(position=index, **item)
            for index, item in enumerate(updates["items"])
        ]

    for field in ("total_weight", "priority", "notes"):
        if field in updates:
            setattr(order, field, updates[field])

    if "feedback" in updates:
        feedback = updates["feedback"]
        if feedback is not None:
            feedback = FeedbackSchema(**feedback)
            if feedback.submitted_at is None:
                feedback.submitted_at = utcnow()
            feedback = feedback.model_dump(mode="json")
        order.feedback = feedback

    if "rider" in updates and updates["rider"] != order.rider_id:
        rider = None
        if updates["rider"] is not None:
            rider = await assignment_service.get_rider_or_404(
                db, updates["rider"], for_update=True
            )
        assignment_service.move_order(order, rider, hold=False)

    if updates.get("status") is not None:
        transition_order(order, updates["status"], updates.get("exception"))
    elif updates.get("exception"):
        if order.exception is None:
            raise InvalidState("Order has no exception to update")
        for key in ("type", "description"):
            if updates["exception"].get(key):
                setattr(order.exception, key, updates["exception"][key])

    check_rider_binding(order)
    if order.status in ACTIVE_ORDER_STATUSES:
        assignment_service.hold_order(order.rider, order)

    order = await commit_order(db, order)
    if order.rider is not None:
        await db.refresh(order.rider)

    logger.info(
        f"Order {order.order_number} updated by {current_user.email}: {sorted(updates)}"
    )

    return format_order_response(order)


async def delete_order(db: AsyncSession, order_id: UUID) -> MessageResponse:
    order = await get_order_or_404(db, order_id, for_update=True)

    assignment_service.release_order(order.rider, order)
    await db.delete(order)
    await db.commit()

    logger.info(f"Order {order.order_number} deleted")

    return MessageResponse(message="Order removed")


async def assign_order(
    db: AsyncSession, order_id: UUID, rider_id: UUID
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, for_update=True)
    rider = await assignment_service.get_rider_or_404(db, rider_id, for_update=True)

    if rider.status != RiderStatus.ACTIVE:
        raise InvalidState("Rider is not active")

    if order.status not in ASSIGNABLE_STATUSES:
        raise InvalidState(f"Cannot assign an order that is {order.status.value}")

    assignment_service.check_capacity(rider, order)
    assignment_service.move_order(order, rider)
    order.status = OrderStatus.ASSIGNED

    order = await commit_order(db, order)

    logger.info(f"Order {order.order_number} assigned to rider {rider.id}")

    return format_order_response(order)


async def report_exception(
    db: AsyncSession, current_user: User, order_id: UUID, data: ExceptionCreate
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, for_update=True)
    await ensure_order_access(db, current_user, order)

    transition_order(order, OrderStatus.EXCEPTION, data.model_dump())

    order = await commit_order(db, order)

    logger.info(
        f"Exception {data.type.value} reported on order {order.order_number} by {current_user.email}"
    )

    return format_order_response(order)


async def resolve_exception(
    db: AsyncSession, order_id: UUID, data: ResolveExceptionSchema
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, for_update=True)

    if order.status != OrderStatus.EXCEPTION:
        raise InvalidState("Order is not in exception status")

    transition_order(order, data.status, resolving=True)

    if order.exception is not None:
        order.exception.resolution = data.resolution
        order.exception.resolved_at = utcnow()

    order = await commit_order(db, order)
    if order.rider is not None:
        await db.refresh(order.rider)

    logger.info(
        f"Exception on order {order.order_number} resolved, status now {order.status.value}"
    )

    return format_order_response(order)
