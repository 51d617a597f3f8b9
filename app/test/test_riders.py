from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.models.models import Rider
from app.schemas.status_schema import OrderStatus, RiderStatus, UserRole
from app.test.factories import (
    RiderFactory,
    UserFactory,
    assigned_order,
    persist,
)

BASE_URL = "/api/riders"


class TestRiderCreation:
    async def test_create_rider_profile(
        self, client: AsyncClient, session, logistics_user, auth_headers
    ):
        user = await persist(session, UserFactory(role=UserRole.RIDER))

        response = await client.post(
            BASE_URL,
            json={"userId": str(user.id), "phone": "+1234567890"},
            headers=auth_headers(logistics_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["id"] == str(user.id)
        assert data["status"] == "offline"
        assert data["capacity"] == 5
        assert data["location"] == {"type": "Point", "coordinates": [0.0, 0.0]}
        assert data["currentOrders"] == []
        assert data["deliveriesCompleted"] == 0
        assert data["ratings"] == {"average": 0.0, "count": 0}

    async def test_one_profile_per_user(
        self, client: AsyncClient, admin_user, rider, auth_headers
    ):
        response = await client.post(
            BASE_URL,
            json={"userId": str(rider.user_id), "phone": "+1"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 409

    async def test_user_must_have_rider_role(
        self, client: AsyncClient, admin_user, operations_user, auth_headers
    ):
        response = await client.post(
            BASE_URL,
            json={"userId": str(operations_user.id), "phone": "+1"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "User must have rider role"

    async def test_unknown_user(self, client: AsyncClient, admin_user, auth_headers):
        response = await client.post(
            BASE_URL,
            json={"userId": str(uuid4()), "phone": "+1"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 404

    async def test_operations_manager_cannot_create(
        self, client: AsyncClient, session, operations_user, auth_headers
    ):
        user = await persist(session, UserFactory(role=UserRole.RIDER))

        response = await client.post(
            BASE_URL,
            json={"userId": str(user.id), "phone": "+1"},
            headers=auth_headers(operations_user),
        )

        assert response.status_code == 403


class TestRiderListing:
    async def test_second_page_of_active_riders(
        self, client: AsyncClient, session, admin_user, auth_headers
    ):
        await persist(session, *[RiderFactory(status=RiderStatus.ACTIVE) for _ in range(25)])
        await persist(session, *[RiderFactory(status=RiderStatus.OFFLINE) for _ in range(3)])

        response = await client.get(
            BASE_URL,
            params={"status": "active", "page": 2, "limit": 10},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 10
        assert data["totalPages"] == 3
        assert data["currentPage"] == 2
        assert data["total"] == 25

    async def test_rider_cannot_list(self, client: AsyncClient, rider, auth_headers):
        response = await client.get(BASE_URL, headers=auth_headers(rider.user))

        assert response.status_code == 403

    async def test_limit_is_bounded(self, client: AsyncClient, admin_user, auth_headers):
        response = await client.get(
            BASE_URL, params={"limit": 500}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 422


class TestRiderUpdate:
    async def test_rider_self_update_drops_extra_fields(
        self, client: AsyncClient, rider, auth_headers
    ):
        response = await client.put(
            f"{BASE_URL}/{rider.id}",
            json={
                "status": "on_break",
                "location": {"type": "Point", "coordinates": [3.38, 6.52]},
                "capacity": 50,
                "phone": "+000",
            },
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "on_break"
        assert data["location"]["coordinates"] == [3.38, 6.52]
        assert data["capacity"] == 5
        assert data["phone"] == rider.phone

    async def test_rider_cannot_update_another_rider(
        self, client: AsyncClient, rider, other_rider, auth_headers
    ):
        response = await client.put(
            f"{BASE_URL}/{other_rider.id}",
            json={"status": "offline"},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 403

    async def test_admin_updates_capacity_and_availability(
        self, client: AsyncClient, admin_user, rider, auth_headers
    ):
        response = await client.put(
            f"{BASE_URL}/{rider.id}",
            json={
                "capacity": 8,
                "availability": [
                    {
                        "date": "2026-01-05T00:00:00",
                        "slots": [
                            {"startTime": "2026-01-05T08:00:00", "endTime": "2026-01-05T12:00:00"}
                        ],
                    }
                ],
            },
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["capacity"] == 8
        assert data["availability"][0]["slots"][0]["booked"] is False

    async def test_location_endpoint(self, client: AsyncClient, rider, auth_headers):
        response = await client.post(
            f"{BASE_URL}/{rider.id}/location",
            json={"longitude": -84.4, "latitude": 33.7},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 200
        assert response.json()["location"]["coordinates"] == [-84.4, 33.7]

    async def test_location_out_of_range(self, client: AsyncClient, rider, auth_headers):
        response = await client.post(
            f"{BASE_URL}/{rider.id}/location",
            json={"longitude": 200, "latitude": 33.7},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 422

    async def test_status_endpoint(self, client: AsyncClient, rider, auth_headers):
        response = await client.post(
            f"{BASE_URL}/{rider.id}/status",
            json={"status": "inactive"},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "inactive"

    async def test_invalid_status_value(self, client: AsyncClient, rider, auth_headers):
        response = await client.post(
            f"{BASE_URL}/{rider.id}/status",
            json={"status": "sleeping"},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 422

    async def test_availability_slot_must_end_after_start(
        self, client: AsyncClient, rider, auth_headers
    ):
        response = await client.post(
            f"{BASE_URL}/{rider.id}/availability",
            json={
                "availability": [
                    {
                        "date": "2026-01-05T00:00:00",
                        "slots": [
                            {"startTime": "2026-01-05T12:00:00", "endTime": "2026-01-05T08:00:00"}
                        ],
                    }
                ]
            },
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 422


class TestRiderOrders:
    async def test_own_orders(
        self, client: AsyncClient, session, admin_user, rider, other_rider, auth_headers
    ):
        await assigned_order(session, rider, admin_user)
        await assigned_order(session, rider, admin_user, status=OrderStatus.DELIVERED)
        await assigned_order(session, other_rider, admin_user)

        response = await client.get(
            f"{BASE_URL}/{rider.id}/orders",
            params={"status": "assigned"},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1

        forbidden = await client.get(
            f"{BASE_URL}/{other_rider.id}/orders", headers=auth_headers(rider.user)
        )
        assert forbidden.status_code == 403


class TestRiderDeletion:
    @pytest.mark.parametrize(
        "status", [OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT]
    )
    async def test_blocked_with_active_orders(
        self, client: AsyncClient, session, admin_user, rider, auth_headers, status
    ):
        await assigned_order(session, rider, admin_user, status=status)

        response = await client.delete(f"{BASE_URL}/{rider.id}", headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert "active orders" in response.json()["detail"]
        assert await session.get(Rider, rider.id) is not None

    async def test_delete_with_only_finished_orders(
        self, client: AsyncClient, session, logistics_user, rider, auth_headers
    ):
        order = await assigned_order(
            session, rider, logistics_user, status=OrderStatus.DELIVERED
        )
        rider_id = rider.id

        response = await client.delete(
            f"{BASE_URL}/{rider_id}", headers=auth_headers(logistics_user)
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Rider profile removed"}
        assert await session.get(Rider, rider_id) is None
        await session.refresh(order)
        assert order.rider_id is None

    async def test_operations_manager_cannot_delete(
        self, client: AsyncClient, operations_user, rider, auth_headers
    ):
        response = await client.delete(
            f"{BASE_URL}/{rider.id}", headers=auth_headers(operations_user)
        )

        assert response.status_code == 403


class TestNearbyRiders:
    async def test_active_riders_nearest_first(
        self, client: AsyncClient, session, admin_user, auth_headers
    ):
        # roughly 110 m, 1.1 km and 2.2 km north of the query point
        near = RiderFactory(longitude=-84.388, latitude=33.750)
        middle = RiderFactory(longitude=-84.388, latitude=33.759)
        far = RiderFactory(longitude=-84.388, latitude=33.769)
        on_break = RiderFactory(status=RiderStatus.ON_BREAK, longitude=-84.388, latitude=33.749)
        out_of_range = RiderFactory(longitude=-84.0, latitude=33.749)
        await persist(session, far, out_of_range, near, on_break, middle)

        response = await client.get(
            f"{BASE_URL}/nearby",
            params={"longitude": -84.388, "latitude": 33.749, "maxDistance": 5000},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == [str(near.id), str(middle.id), str(far.id)]
        assert data[0]["distance"] < data[1]["distance"] < data[2]["distance"]
        assert data[2]["distance"] <= 5000

    async def test_caps_results_at_ten(
        self, client: AsyncClient, session, admin_user, auth_headers
    ):
        await persist(
            session,
            *[RiderFactory(longitude=-84.388, latitude=33.749 + i * 0.001) for i in range(12)],
        )

        response = await client.get(
            f"{BASE_URL}/nearby",
            params={"longitude": -84.388, "latitude": 33.749},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert len(response.json()) == 10

    async def test_rider_cannot_query(self, client: AsyncClient, rider, auth_headers):
        response = await client.get(
            f"{BASE_URL}/nearby",
            params={"longitude": 0, "latitude": 0},
            headers=auth_headers(rider.user),
        )

        assert response.status_code == 403
