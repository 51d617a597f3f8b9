from typing import Optional
from uuid import UUID, uuid4
from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.database import Base
from app.schemas.status_schema import (
    ExceptionType,
    OrderPriority,
    OrderStatus,
    RiderStatus,
    UserRole,
)
from app.utils.utils import utcnow


# Set of orders a rider currently holds; the composite key keeps it a set
rider_current_orders = Table(
    "rider_current_orders",
    Base.metadata,
    Column(
        "rider_id", ForeignKey("riders.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "order_id", ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True
    ),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str]
    role: Mapped[UserRole] = mapped_column(default=UserRole.RIDER)
    active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    rider_profile: Mapped[Optional["Rider"]] = relationship(
        back_populates="user", uselist=False, lazy="noload"
    )


class Rider(Base):
    __tablename__ = "riders"
    __table_args__ = (Index("ix_riders_status_location", "status", "latitude", "longitude"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    phone: Mapped[str] = mapped_column(String(40))
    status: Mapped[RiderStatus] = mapped_column(default=RiderStatus.OFFLINE)

    # Last known point, [longitude, latitude] on the wire
    longitude: Mapped[float] = mapped_column(default=0.0)
    latitude: Mapped[float] = mapped_column(default=0.0)

    deliveries_completed: Mapped[int] = mapped_column(default=0)
    rating_average: Mapped[float] = mapped_column(default=0.0)
    rating_count: Mapped[int] = mapped_column(default=0)
    capacity: Mapped[int] = mapped_column(default=5)
    availability: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship(back_populates="rider_profile", lazy="selectin")
    current_orders: Mapped[set["Order"]] = relationship(
        secondary=rider_current_orders,
        collection_class=set,
        lazy="selectin",
    )


class Counter(Base):
    """Named monotonically increasing sequence, bumped with UPDATE ... RETURNING."""

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(default=0)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    order_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)

    customer_name: Mapped[str]
    customer_phone: Mapped[str]
    customer_address: Mapped[str]

    pickup_longitude: Mapped[float]
    pickup_latitude: Mapped[float]
    pickup_address: Mapped[str]
    pickup_scheduled_time: Mapped[datetime]
    pickup_completed_time: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    delivery_longitude: Mapped[float]
    delivery_latitude: Mapped[float]
    delivery_address: Mapped[str]
    delivery_scheduled_time: Mapped[datetime]
    delivery_estimated_time: Mapped[datetime]
    delivery_actual_time: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    rider_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("riders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(default=OrderStatus.PENDING, index=True)
    priority: Mapped[OrderPriority] = mapped_column(default=OrderPriority.MEDIUM)
    total_weight: Mapped[Optional[float]] = mapped_column(nullable=True)
    feedback: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    rider: Mapped[Optional["Rider"]] = relationship(foreign_keys=[rider_id], lazy="selectin")
    created_by: Mapped["User"] = relationship(foreign_keys=[created_by_id], lazy="selectin")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )
    exception: Mapped[Optional["OrderException"]] = relationship(
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    order_id: Mapped[UUID] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"))
    position: Mapped[int] = mapped_column(default=0)
    name: Mapped[str]
    quantity: Mapped[int]
    weight: Mapped[Optional[float]] = mapped_column(nullable=True)

    order: Mapped["Order"] = relationship(back_populates="items")


class OrderException(Base):
    """Delivery problem on an order. The row exists once an exception was reported."""

    __tablename__ = "order_exceptions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    order_id: Mapped[UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), unique=True
    )
    type: Mapped[ExceptionType]
    description: Mapped[str] = mapped_column(Text)
    reported_at: Mapped[datetime] = mapped_column(default=utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order: Mapped["Order"] = relationship(back_populates="exception")
