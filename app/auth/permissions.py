"""
Role gates and per-role field permissions.

Privileged roles may act on any order or rider. A rider may only act on its
own rider profile and on orders assigned to that profile, and only the fields
listed in FIELD_PERMISSIONS for its role survive an update; the rest are
dropped before anything is applied.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.auth import get_current_user
from app.models.models import Order, Rider, User
from app.schemas.status_schema import OrderStatus, UserRole
from app.utils.errors import Forbidden, NotFound


PRIVILEGED_ROLES = frozenset(
    {UserRole.ADMIN, UserRole.LOGISTICS_MANAGER, UserRole.OPERATIONS_MANAGER}
)
MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.LOGISTICS_MANAGER})

ORDER = "order"
RIDER = "rider"
UPDATE = "update"

ORDER_MUTABLE_FIELDS = frozenset(
    {
        "order_number",
        "customer",
        "pickup",
        "delivery",
        "rider",
        "status",
        "exception",
        "items",
        "total_weight",
        "priority",
        "feedback",
        "notes",
    }
)
RIDER_MUTABLE_FIELDS = frozenset(
    {"phone", "status", "location", "capacity", "availability"}
)

# (role, entity, action) -> fields that role may write
FIELD_PERMISSIONS: dict[tuple[UserRole, str, str], frozenset[str]] = {
    (UserRole.RIDER, ORDER, UPDATE): frozenset({"status"}),
    (UserRole.RIDER, RIDER, UPDATE): frozenset({"status", "location"}),
}
for _role in PRIVILEGED_ROLES:
    FIELD_PERMISSIONS[(_role, ORDER, UPDATE)] = ORDER_MUTABLE_FIELDS
    FIELD_PERMISSIONS[(_role, RIDER, UPDATE)] = RIDER_MUTABLE_FIELDS


def is_privileged(user: User) -> bool:
    return user.role in PRIVILEGED_ROLES


def allowed_fields(role: UserRole, entity: str, action: str) -> frozenset[str]:
    return FIELD_PERMISSIONS.get((role, entity, action), frozenset())


def filter_order_update(role: UserRole, updates: dict) -> dict:
    allowed = set(allowed_fields(role, ORDER, UPDATE))
    # A rider may describe the exception it is raising, nothing more
    if role == UserRole.RIDER and updates.get("status") == OrderStatus.EXCEPTION:
        allowed.add("exception")
    return {key: value for key, value in updates.items() if key in allowed}


def filter_rider_update(role: UserRole, updates: dict) -> dict:
    allowed = allowed_fields(role, RIDER, UPDATE)
    return {key: value for key, value in updates.items() if key in allowed}


def require_roles(*roles: UserRole):
    """Dependency that lets only the given roles through."""

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden("Not authorized to perform this action")
        return current_user

    return role_checker


require_privileged = require_roles(*PRIVILEGED_ROLES)
require_manager = require_roles(*MANAGER_ROLES)


async def get_rider_profile(db: AsyncSession, user: User) -> Optional[Rider]:
    result = await db.execute(select(Rider).where(Rider.user_id == user.id))
    return result.scalar_one_or_none()


async def get_own_rider_or_404(db: AsyncSession, user: User) -> Rider:
    rider = await get_rider_profile(db, user)
    if rider is None:
        raise NotFound("Rider profile not found")
    return rider


async def ensure_rider_access(db: AsyncSession, user: User, rider_id: UUID) -> None:
    """Riders may only act on their own profile."""
    if is_privileged(user):
        return
    own = await get_own_rider_or_404(db, user)
    if own.id != rider_id:
        raise Forbidden("Not authorized to access this rider")


async def ensure_order_access(db: AsyncSession, user: User, order: Order) -> None:
    """Riders may only act on orders assigned to their own profile."""
    if is_privileged(user):
        return
    own = await get_own_rider_or_404(db, user)
    if order.rider_id != own.id:
        raise Forbidden("Not authorized to access this order")
