"""
Load sample users, rider profiles and orders.

    python -m app.seeder        # wipe and import
    python -m app.seeder -d     # wipe only
"""

import argparse
import asyncio
from datetime import timedelta

from sqlalchemy import delete

from app.database.database import Base, async_session, engine
from app.models.models import (
    Counter,
    Order,
    OrderException,
    OrderItem,
    Rider,
    User,
    rider_current_orders,
)
from app.schemas.status_schema import (
    ACTIVE_ORDER_STATUSES,
    ExceptionType,
    OrderPriority,
    OrderStatus,
    RiderStatus,
    UserRole,
)
from app.services.auth_service import hash_password
from app.utils.logger_config import setup_logger
from app.utils.utils import utcnow

logger = setup_logger()

DEFAULT_PASSWORD = "password123"

USERS = [
    ("Admin User", "admin@example.com", UserRole.ADMIN),
    ("Logistics Manager", "logistics@example.com", UserRole.LOGISTICS_MANAGER),
    ("Operations Manager", "operations@example.com", UserRole.OPERATIONS_MANAGER),
    ("Alex Martinez", "alex@example.com", UserRole.RIDER),
    ("Maria Rodriguez", "maria@example.com", UserRole.RIDER),
    ("James Thompson", "james@example.com", UserRole.RIDER),
    ("Lisa Kim", "lisa@example.com", UserRole.RIDER),
    ("Tom Baker", "tom@example.com", UserRole.RIDER),
]

# email -> (phone, status, [lng, lat], deliveries, rating average, rating count, capacity)
RIDERS = {
    "alex@example.com": ("+1234567890", RiderStatus.ACTIVE, [-84.388, 33.749], 3, 4.7, 15, 5),
    "maria@example.com": ("+1234567891", RiderStatus.ACTIVE, [-84.390, 33.751], 2, 4.5, 10, 4),
    "james@example.com": ("+1234567892", RiderStatus.ON_BREAK, [-84.385, 33.745], 1, 4.2, 5, 6),
    "lisa@example.com": ("+1234567893", RiderStatus.ACTIVE, [-84.392, 33.747], 4, 4.8, 20, 5),
    "tom@example.com": ("+1234567894", RiderStatus.ACTIVE, [-84.395, 33.752], 2, 4.6, 12, 4),
}

ORDERS = [
    {
        "order_number": "ORD-1234",
        "customer": ("John Smith", "+1234567895", "123 Main St, Atlanta, GA"),
        "pickup": ([-84.380, 33.740], "456 Pickup St, Atlanta, GA", 60),
        "delivery": ([-84.375, 33.735], "123 Main St, Atlanta, GA", 120),
        "rider": "alex@example.com",
        "status": OrderStatus.IN_TRANSIT,
        "items": [("Medicine Package", 1, 0.5)],
        "priority": OrderPriority.HIGH,
    },
    {
        "order_number": "ORD-1235",
        "customer": ("Sarah Johnson", "+1234567896", "456 Oak Ave, Atlanta, GA"),
        "pickup": ([-84.382, 33.742], "789 Warehouse St, Atlanta, GA", 30),
        "delivery": ([-84.379, 33.738], "456 Oak Ave, Atlanta, GA", 90),
        "rider": "maria@example.com",
        "status": OrderStatus.PICKED_UP,
        "items": [("Grocery Package", 3, 4.5)],
        "priority": OrderPriority.MEDIUM,
    },
    {
        "order_number": "ORD-1236",
        "customer": ("David Lee", "+1234567897", "789 Pine St, Atlanta, GA"),
        "pickup": ([-84.384, 33.744], "321 Store St, Atlanta, GA", -30),
        "delivery": ([-84.377, 33.737], "789 Pine St, Atlanta, GA", 30),
        "status": OrderStatus.EXCEPTION,
        "exception": (ExceptionType.CUSTOMER_UNAVAILABLE, "Customer not at delivery location", 0),
        "items": [("Electronics", 1, 2.0)],
        "priority": OrderPriority.MEDIUM,
    },
    {
        "order_number": "ORD-1237",
        "customer": ("Emily Chen", "+1234567898", "101 Cedar Rd, Atlanta, GA"),
        "pickup": ([-84.386, 33.746], "654 Warehouse St, Atlanta, GA", 90),
        "delivery": ([-84.381, 33.741], "101 Cedar Rd, Atlanta, GA", 150),
        "rider": "james@example.com",
        "status": OrderStatus.ASSIGNED,
        "items": [("Office Supplies", 2, 3.0)],
        "priority": OrderPriority.LOW,
    },
    {
        "order_number": "ORD-1238",
        "customer": ("Michael Brown", "+1234567899", "202 Elm St, Atlanta, GA"),
        "pickup": ([-84.388, 33.748], "987 Store St, Atlanta, GA", 60),
        "delivery": ([-84.383, 33.743], "202 Elm St, Atlanta, GA", 120),
        "status": OrderStatus.PENDING,
        "items": [("Clothing", 1, 1.0)],
        "priority": OrderPriority.MEDIUM,
    },
    {
        "order_number": "ORD-1239",
        "customer": ("Jessica Wilson", "+1234567800", "303 Maple Ave, Atlanta, GA"),
        "pickup": ([-84.390, 33.750], "123 Store Blvd, Atlanta, GA", 30),
        "delivery": ([-84.385, 33.745], "303 Maple Ave, Atlanta, GA", 90),
        "rider": "tom@example.com",
        "status": OrderStatus.IN_TRANSIT,
        "items": [("Food Delivery", 2, 1.5)],
        "priority": OrderPriority.HIGH,
    },
    {
        "order_number": "ORD-1240",
        "customer": ("Robert Chen", "+1234567801", "555 Birch Lane, Atlanta, GA"),
        "pickup": ([-84.392, 33.752], "444 Pickup Pl, Atlanta, GA", -60),
        "delivery": ([-84.387, 33.747], "555 Birch Lane, Atlanta, GA", 0),
        "status": OrderStatus.EXCEPTION,
        "exception": (ExceptionType.ADDRESS_ISSUE, "Address does not exist", -30),
        "items": [("Documents", 1, 0.2)],
        "priority": OrderPriority.URGENT,
    },
]


async def destroy_data(db) -> None:
    for table in (rider_current_orders, OrderException, OrderItem, Order, Rider, Counter, User):
        await db.execute(delete(table))
    await db.commit()
    logger.info("Data destroyed")


def build_order(entry: dict, created_by: User, riders: dict[str, Rider]) -> Order:
    now = utcnow()
    customer_name, customer_phone, customer_address = entry["customer"]
    (pickup_lng, pickup_lat), pickup_address, pickup_in = entry["pickup"]
    (delivery_lng, delivery_lat), delivery_address, delivery_in = entry["delivery"]

    order = Order(
        order_number=entry["order_number"],
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_address=customer_address,
        pickup_longitude=pickup_lng,
        pickup_latitude=pickup_lat,
        pickup_address=pickup_address,
        pickup_scheduled_time=now + timedelta(minutes=pickup_in),
        delivery_longitude=delivery_lng,
        delivery_latitude=delivery_lat,
        delivery_address=delivery_address,
        delivery_scheduled_time=now + timedelta(minutes=delivery_in),
        delivery_estimated_time=now + timedelta(minutes=delivery_in),
        status=entry["status"],
        priority=entry["priority"],
        created_by_id=created_by.id,
        items=[
            OrderItem(position=index, name=name, quantity=quantity, weight=weight)
            for index, (name, quantity, weight) in enumerate(entry["items"])
        ],
    )

    if entry["status"] in (OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT):
        order.pickup_completed_time = order.pickup_scheduled_time

    if "exception" in entry:
        exception_type, description, reported_in = entry["exception"]
        order.exception = OrderException(
            type=exception_type,
            description=description,
            reported_at=now + timedelta(minutes=reported_in),
        )

    if "rider" in entry:
        rider = riders[entry["rider"]]
        order.rider = rider
        if order.status in ACTIVE_ORDER_STATUSES:
            rider.current_orders.add(order)

    return order


async def import_data(db) -> None:
    await destroy_data(db)

    users = {}
    for name, email, role in USERS:
        user = User(
            name=name,
            email=email,
            password=hash_password(DEFAULT_PASSWORD),
            role=role,
        )
        db.add(user)
        users[email] = user
    await db.flush()

    riders = {}
    for email, (phone, status, location, deliveries, average, count, capacity) in RIDERS.items():
        rider = Rider(
            user=users[email],
            phone=phone,
            status=status,
            longitude=location[0],
            latitude=location[1],
            deliveries_completed=deliveries,
            rating_average=average,
            rating_count=count,
            capacity=capacity,
            availability=[],
            current_orders=set(),
        )
        db.add(rider)
        riders[email] = rider
    await db.flush()

    admin = users["admin@example.com"]
    for entry in ORDERS:
        db.add(build_order(entry, admin, riders))

    await db.commit()

    logger.info(f"Data imported: {len(USERS)} users, {len(RIDERS)} riders, {len(ORDERS)} orders")
    logger.info(f"Created users: {', '.join(users)}")


async def main(destroy: bool = False) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        async with async_session() as db:
            if destroy:
                await destroy_data(db)
            else:
                await import_data(db)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the dispatch database")
    parser.add_argument("-d", "--destroy", action="store_true", help="Delete all data and exit")
    args = parser.parse_args()

    asyncio.run(main(destroy=args.destroy))
