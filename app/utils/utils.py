import math
from datetime import datetime, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


EARTH_RADIUS_METERS = 6_371_000


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points given in decimal degrees.

    Returns:
        Distance in metres
    """
    lon1, lat1, lon2, lat2 = map(math.radians, [lon1, lat1, lon2, lat2])

    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return c * EARTH_RADIUS_METERS


def bounding_box(
    longitude: float, latitude: float, radius: float
) -> tuple[float, float, float, float]:
    """
    Degree box around a point that contains every point within `radius` metres.

    Returns:
        (min_longitude, max_longitude, min_latitude, max_latitude)
    """
    angular = radius / EARTH_RADIUS_METERS
    lat_delta = math.degrees(angular)
    cos_lat = math.cos(math.radians(latitude))

    # Circles reaching over a pole span every longitude
    if math.sin(angular) >= cos_lat:
        lng_delta = 180.0
    else:
        lng_delta = math.degrees(math.asin(math.sin(angular) / cos_lat))

    return (
        longitude - lng_delta,
        longitude + lng_delta,
        max(-90.0, latitude - lat_delta),
        min(90.0, latitude + lat_delta),
    )


async def paginate(db: AsyncSession, stmt: Select, page: int, limit: int) -> dict:
    """Run `stmt` for one 1-based page and return the list envelope."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    items = result.scalars().unique().all()

    return {
        "items": items,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
        "total": total,
    }
