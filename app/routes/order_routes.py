from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.auth import get_current_user
from app.auth.permissions import require_manager, require_privileged
from app.database.database import get_db
from app.models.models import User
from app.schemas.order_schema import (
    AssignOrderSchema,
    ExceptionCreate,
    OrderCreate,
    OrderResponse,
    OrderUpdate,
    PaginatedOrderResponse,
    ResolveExceptionSchema,
)
from app.schemas.schemas import MessageResponse
from app.schemas.stats_schema import OrderStatsResponse
from app.schemas.status_schema import OrderPriority, OrderStatus
from app.services import order_service, stats_service

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("/stats", status_code=status.HTTP_200_OK)
async def get_order_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderStatsResponse:
    return await stats_service.get_order_stats(db=db)


@router.get("", status_code=status.HTTP_200_OK)
async def get_orders(
    status: Optional[OrderStatus] = None,
    rider: Optional[UUID] = None,
    priority: Optional[OrderPriority] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PaginatedOrderResponse:
    return await order_service.get_orders(
        db=db,
        current_user=current_user,
        status=status,
        rider=rider,
        priority=priority,
        page=page,
        limit=limit,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> OrderResponse:
    return await order_service.create_order(db=db, current_user=current_user, data=data)


@router.get("/{order_id}", status_code=status.HTTP_200_OK)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderResponse:
    return await order_service.get_order(db=db, current_user=current_user, order_id=order_id)


@router.put("/{order_id}", status_code=status.HTTP_200_OK)
async def update_order(
    order_id: UUID,
    data: OrderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderResponse:
    return await order_service.update_order(
        db=db, current_user=current_user, order_id=order_id, data=data
    )


@router.delete("/{order_id}", status_code=status.HTTP_200_OK)
async def delete_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
) -> MessageResponse:
    return await order_service.delete_order(db=db, order_id=order_id)


@router.post("/{order_id}/assign", status_code=status.HTTP_200_OK)
async def assign_order(
    order_id: UUID,
    data: AssignOrderSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> OrderResponse:
    return await order_service.assign_order(db=db, order_id=order_id, rider_id=data.rider_id)


@router.post("/{order_id}/exception", status_code=status.HTTP_200_OK)
async def report_exception(
    order_id: UUID,
    data: ExceptionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderResponse:
    return await order_service.report_exception(
        db=db, current_user=current_user, order_id=order_id, data=data
    )


@router.post("/{order_id}/resolve-exception", status_code=status.HTTP_200_OK)
async def resolve_exception(
    order_id: UUID,
    data: ResolveExceptionSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> OrderResponse:
    return await order_service.resolve_exception(db=db, order_id=order_id, data=data)
