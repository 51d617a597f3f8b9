from datetime import datetime, time

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.config import settings
from app.models.models import Order, Rider, User
from app.schemas.stats_schema import (
    OrderStatsResponse,
    OrderStatusCount,
    RiderStatsResponse,
    RiderStatusCount,
    TopRiderStat,
)
from app.schemas.status_schema import OPEN_ORDER_STATUSES, OrderStatus, RiderStatus
from app.utils.logger_config import setup_logger
from app.utils.utils import utcnow

logger = setup_logger()

TOP_RIDERS_LIMIT = 5


def start_of_today() -> datetime:
    return datetime.combine(utcnow().date(), time.min)


def calculate_on_time_rate(on_time: int, delivered: int) -> float:
    """Share of delivered orders that arrived by their estimate, as a percentage."""
    if not delivered:
        return 0
    return round(on_time / delivered * 100, 2)


async def get_order_stats(db: AsyncSession) -> OrderStatsResponse:
    """
    Dashboard order widgets.

    Returns:
        OrderStatsResponse with bucket counts, on-time rate and a
        per-status histogram
    """
    status_rows = await db.execute(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    )
    by_status = {row[0]: row[1] for row in status_rows.all()}

    today_orders = (
        await db.execute(
            select(func.count(Order.id)).where(Order.created_at >= start_of_today())
        )
    ).scalar_one()

    on_time = (
        await db.execute(
            select(func.count(Order.id)).where(
                and_(
                    Order.status == OrderStatus.DELIVERED,
                    Order.delivery_actual_time.is_not(None),
                    Order.delivery_actual_time <= Order.delivery_estimated_time,
                )
            )
        )
    ).scalar_one()

    delivered = by_status.get(OrderStatus.DELIVERED, 0)

    stats = OrderStatsResponse(
        total_orders=sum(by_status.values()),
        active_orders=sum(by_status.get(status, 0) for status in OPEN_ORDER_STATUSES),
        delivered_orders=delivered,
        exception_orders=by_status.get(OrderStatus.EXCEPTION, 0),
        today_orders=today_orders,
        on_time_rate=calculate_on_time_rate(on_time, delivered),
        orders_by_status=[
            OrderStatusCount(status=status, count=count)
            for status, count in sorted(by_status.items(), key=lambda item: item[0].value)
        ],
    )

    if settings.DEBUG:
        logger.debug(f"Order stats: {stats.model_dump()}")

    return stats


async def get_rider_stats(db: AsyncSession) -> RiderStatsResponse:
    status_rows = await db.execute(
        select(Rider.status, func.count(Rider.id)).group_by(Rider.status)
    )
    by_status = {row[0]: row[1] for row in status_rows.all()}

    top_rows = await db.execute(
        select(Rider.id, User.name, Rider.deliveries_completed)
        .join(User, Rider.user_id == User.id)
        .order_by(Rider.deliveries_completed.desc(), User.name)
        .limit(TOP_RIDERS_LIMIT)
    )

    return RiderStatsResponse(
        total_riders=sum(by_status.values()),
        active_riders=by_status.get(RiderStatus.ACTIVE, 0),
        on_break_riders=by_status.get(RiderStatus.ON_BREAK, 0),
        inactive_riders=by_status.get(RiderStatus.INACTIVE, 0),
        offline_riders=by_status.get(RiderStatus.OFFLINE, 0),
        top_riders=[
            TopRiderStat(id=rider_id, name=name, deliveries_completed=deliveries)
            for rider_id, name, deliveries in top_rows.all()
        ],
        riders_by_status=[
            RiderStatusCount(status=status, count=count)
            for status, count in sorted(by_status.items(), key=lambda item: item[0].value)
        ],
    )
