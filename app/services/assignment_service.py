"""
Rider-side effects of order transitions: the rider's set of current orders
and its delivery counter. Callers commit; nothing here touches the session
transaction.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.config import settings
from app.models.models import Order, Rider
from app.utils.errors import InvalidState, NotFound
from app.utils.logger_config import setup_logger

logger = setup_logger()


async def get_rider_or_404(
    db: AsyncSession, rider_id: UUID, for_update: bool = False
) -> Rider:
    stmt = select(Rider).where(Rider.id == rider_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    rider = result.scalar_one_or_none()

    if not rider:
        raise NotFound("Rider not found")

    return rider


def hold_order(rider: Rider, order: Order) -> None:
    # set semantics: adding twice is a no-op
    rider.current_orders.add(order)


def release_order(rider: Optional[Rider], order: Order) -> None:
    if rider is not None:
        rider.current_orders.discard(order)


def check_capacity(rider: Rider, order: Order) -> None:
    """Only enforced when ENFORCE_RIDER_CAPACITY is on."""
    if not settings.ENFORCE_RIDER_CAPACITY or order in rider.current_orders:
        return
    if len(rider.current_orders) >= rider.capacity:
        raise InvalidState("Rider is at full capacity")


def move_order(order: Order, rider: Optional[Rider], hold: bool = True) -> None:
    """Point the order at `rider` and keep both riders' current order sets in step."""
    previous = order.rider
    if previous is not None and previous is not rider:
        release_order(previous, order)

    order.rider = rider
    if hold and rider is not None:
        hold_order(rider, order)


def record_delivery(rider: Rider, order: Order) -> None:
    # incremented in SQL so concurrent deliveries are not lost
    rider.deliveries_completed = Rider.deliveries_completed + 1
    release_order(rider, order)
    logger.info(f"Rider {rider.id} completed order {order.order_number}")
