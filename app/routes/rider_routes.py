from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.auth import get_current_user
from app.auth.permissions import require_manager, require_privileged
from app.database.database import get_db
from app.models.models import User
from app.schemas.order_schema import PaginatedOrderResponse
from app.schemas.rider_schema import (
    AvailabilityUpdate,
    LocationUpdate,
    NearbyRiderResponse,
    PaginatedRiderResponse,
    RiderCreate,
    RiderResponse,
    RiderStatusUpdate,
    RiderUpdate,
)
from app.schemas.schemas import MessageResponse
from app.schemas.stats_schema import RiderStatsResponse
from app.schemas.status_schema import OrderStatus, RiderStatus
from app.services import rider_service, stats_service

router = APIRouter(prefix="/api/riders", tags=["Riders"])


@router.get("/stats", status_code=status.HTTP_200_OK)
async def get_rider_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> RiderStatsResponse:
    return await stats_service.get_rider_stats(db=db)


@router.get("/nearby", status_code=status.HTTP_200_OK)
async def get_nearby_riders(
    longitude: float = Query(..., ge=-180, le=180),
    latitude: float = Query(..., ge=-90, le=90),
    max_distance: Optional[float] = Query(None, alias="maxDistance", gt=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> list[NearbyRiderResponse]:
    return await rider_service.get_nearby_riders(
        db=db, longitude=longitude, latitude=latitude, max_distance=max_distance
    )


@router.get("", status_code=status.HTTP_200_OK)
async def get_riders(
    status: Optional[RiderStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_privileged),
) -> PaginatedRiderResponse:
    return await rider_service.get_riders(db=db, status=status, page=page, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_rider(
    data: RiderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
) -> RiderResponse:
    return await rider_service.create_rider(db=db, data=data)


@router.get("/{rider_id}", status_code=status.HTTP_200_OK)
async def get_rider(
    rider_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RiderResponse:
    return await rider_service.get_rider(db=db, current_user=current_user, rider_id=rider_id)


@router.put("/{rider_id}", status_code=status.HTTP_200_OK)
async def update_rider(
    rider_id: UUID,
    data: RiderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RiderResponse:
    return await rider_service.update_rider(
        db=db, current_user=current_user, rider_id=rider_id, data=data
    )


@router.delete("/{rider_id}", status_code=status.HTTP_200_OK)
async def delete_rider(
    rider_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
) -> MessageResponse:
    return await rider_service.delete_rider(db=db, rider_id=rider_id)


@router.post("/{rider_id}/location", status_code=status.HTTP_200_OK)
async def update_rider_location(
    rider_id: UUID,
    data: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RiderResponse:
    return await rider_service.update_rider_location(
        db=db, current_user=current_user, rider_id=rider_id, data=data
    )


@router.get("/{rider_id}/orders", status_code=status.HTTP_200_OK)
async def get_rider_orders(
    rider_id: UUID,
    status: Optional[OrderStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PaginatedOrderResponse:
    return await rider_service.get_rider_orders(
        db=db,
        current_user=current_user,
        rider_id=rider_id,
        status=status,
        page=page,
        limit=limit,
    )


@router.post("/{rider_id}/status", status_code=status.HTTP_200_OK)
async def update_rider_status(
    rider_id: UUID,
    data: RiderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RiderResponse:
    return await rider_service.update_rider_status(
        db=db, current_user=current_user, rider_id=rider_id, status=data.status
    )


@router.post("/{rider_id}/availability", status_code=status.HTTP_200_OK)
async def update_rider_availability(
    rider_id: UUID,
    data: AvailabilityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RiderResponse:
    return await rider_service.update_rider_availability(
        db=db, current_user=current_user, rider_id=rider_id, data=data
    )
