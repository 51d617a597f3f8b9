import math
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.schemas.schemas import GeoPoint
from app.utils.utils import bounding_box, haversine_distance, to_naive_utc


class TestHaversine:
    def test_same_point(self):
        assert haversine_distance(33.749, -84.388, 33.749, -84.388) == 0

    def test_one_degree_of_latitude(self):
        distance = haversine_distance(0, 0, 1, 0)

        assert distance == pytest.approx(111_195, rel=1e-3)

    def test_longitude_shrinks_away_from_equator(self):
        at_equator = haversine_distance(0, 0, 0, 1)
        at_sixty = haversine_distance(60, 0, 60, 1)

        assert at_equator == pytest.approx(haversine_distance(0, 0, 1, 0))
        assert at_sixty == pytest.approx(at_equator / 2, rel=1e-3)


class TestBoundingBox:
    def test_contains_radius(self):
        min_lng, max_lng, min_lat, max_lat = bounding_box(-84.388, 33.749, 5000)

        assert min_lat < 33.749 < max_lat
        assert min_lng < -84.388 < max_lng
        assert haversine_distance(33.749, -84.388, max_lat, -84.388) == pytest.approx(5000)

    def test_points_inside_radius_fall_in_box(self):
        min_lng, max_lng, min_lat, max_lat = bounding_box(-84.388, 33.749, 5000)

        # 4.99 km due north and roughly due east
        north = 33.749 + 4990 / 111_195
        east = -84.388 + 4990 / (111_195 * math.cos(math.radians(33.749)))

        assert haversine_distance(33.749, -84.388, north, -84.388) < 5000
        assert haversine_distance(33.749, -84.388, 33.749, east) < 5000
        assert north <= max_lat
        assert east <= max_lng

    def test_latitude_is_clamped(self):
        _, _, min_lat, max_lat = bounding_box(0, 89.99, 50_000)

        assert max_lat == 90.0
        assert min_lat < 89.99


class TestGeoPoint:
    def test_longitude_first(self):
        point = GeoPoint(coordinates=[-84.388, 33.749])

        assert point.longitude == -84.388
        assert point.latitude == 33.749

    @pytest.mark.parametrize("coordinates", [[181, 0], [0, 91], [1.0], [1, 2, 3]])
    def test_rejects_bad_coordinates(self, coordinates):
        with pytest.raises(ValidationError):
            GeoPoint(coordinates=coordinates)


def test_to_naive_utc():
    aware = datetime(2026, 1, 5, 10, 0, tzinfo=timezone(timedelta(hours=1)))

    assert to_naive_utc(aware) == datetime(2026, 1, 5, 9, 0)
    assert to_naive_utc(datetime(2026, 1, 5, 9, 0)) == datetime(2026, 1, 5, 9, 0)
    assert to_naive_utc(None) is None
