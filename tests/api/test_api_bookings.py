"""
预订与可用房间 API 测试
"""
from fastapi.testclient import TestClient

from branch_pms.models.ontology import Booking


def booking_body(guest, rooms, check_in="2025-10-15T14:00:00", check_out="2025-10-18T11:00:00"):
    return {
        "guestId": guest.id,
        "checkInDate": check_in,
        "checkOutDate": check_out,
        "roomIds": [r.id for r in rooms],
    }


class TestAvailableRooms:
    def test_available_with_camel_case_query(self, client: TestClient, auth_headers,
                                             room_101, room_201, other_branch_room):
        response = client.get(
            "/rooms/available",
            params={"checkInDate": "2025-10-15T14:00:00", "checkOutDate": "2025-10-18T11:00:00"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        numbers = [r["room_number"] for r in response.json()["data"]]
        assert numbers == ["101", "201"]

    def test_filter_by_room_type(self, client: TestClient, auth_headers, room_101, room_201, deluxe_type):
        response = client.get(
            "/rooms/available",
            params={
                "checkInDate": "2025-10-15T14:00:00",
                "checkOutDate": "2025-10-18T11:00:00",
                "roomTypeId": deluxe_type.id,
            },
            headers=auth_headers,
        )
        assert [r["room_number"] for r in response.json()["data"]] == ["201"]

    def test_booked_room_excluded(self, client: TestClient, auth_headers, room_101, room_102, sample_guest):
        client.post("/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers)

        response = client.get(
            "/rooms/available",
            params={"checkInDate": "2025-10-16T14:00:00", "checkOutDate": "2025-10-17T11:00:00"},
            headers=auth_headers,
        )
        assert [r["room_number"] for r in response.json()["data"]] == ["102"]

    def test_invalid_range(self, client: TestClient, auth_headers, room_101):
        response = client.get(
            "/rooms/available",
            params={"checkInDate": "2025-10-18T11:00:00", "checkOutDate": "2025-10-15T14:00:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_missing_dates(self, client: TestClient, auth_headers):
        response = client.get("/rooms/available", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestCreateBooking:
    def test_create_booking(self, client: TestClient, auth_headers, room_101, sample_guest):
        response = client.post("/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        assert "booking_id" in body["data"]

    def test_snake_case_body_accepted(self, client: TestClient, auth_headers, room_101, sample_guest):
        response = client.post("/bookings", json={
            "guest_id": sample_guest.id,
            "check_in_date": "2025-10-15T14:00:00",
            "check_out_date": "2025-10-18T11:00:00",
            "room_ids": [room_101.id],
        }, headers=auth_headers)
        assert response.status_code == 201

    def test_conflict(self, client: TestClient, auth_headers, db_session, room_101, sample_guest):
        client.post("/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers)
        response = client.post(
            "/bookings",
            json=booking_body(sample_guest, [room_101], "2025-10-17T14:00:00", "2025-10-20T11:00:00"),
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["data"] is None
        assert db_session.query(Booking).count() == 1

    def test_timezone_offset_normalized(self, client: TestClient, auth_headers, db_session, room_101, sample_guest):
        response = client.post(
            "/bookings",
            json=booking_body(sample_guest, [room_101], "2025-10-15T19:30:00+05:30", "2025-10-18T16:30:00+05:30"),
            headers=auth_headers,
        )
        booking = db_session.get(Booking, response.json()["data"]["booking_id"])
        assert booking.check_in.isoformat() == "2025-10-15T14:00:00"

    def test_invalid_range(self, client: TestClient, auth_headers, room_101, sample_guest):
        response = client.post(
            "/bookings",
            json=booking_body(sample_guest, [room_101], "2025-10-18T11:00:00", "2025-10-15T14:00:00"),
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_missing_fields(self, client: TestClient, auth_headers):
        response = client.post("/bookings", json={"roomIds": [1]}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["statusCode"] == 400

    def test_other_branch_room_rejected(self, client: TestClient, auth_headers, other_branch_room, sample_guest):
        response = client.post("/bookings", json=booking_body(sample_guest, [other_branch_room]), headers=auth_headers)
        assert response.status_code == 409


class TestBookingLifecycle:
    def test_checkin_checkout(self, client: TestClient, auth_headers, room_101, sample_guest):
        booking_id = client.post(
            "/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers
        ).json()["data"]["booking_id"]

        response = client.put(f"/bookings/{booking_id}/checkin", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "checked_in"

        rooms = client.get("/rooms", headers=auth_headers).json()["data"]
        assert rooms[0]["status"] == "occupied"

        response = client.put(f"/bookings/{booking_id}/checkout", headers=auth_headers)
        assert response.json()["data"]["status"] == "checked_out"

    def test_cancel_twice(self, client: TestClient, auth_headers, room_101, sample_guest):
        booking_id = client.post(
            "/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers
        ).json()["data"]["booking_id"]

        assert client.put(f"/bookings/{booking_id}/cancel", headers=auth_headers).status_code == 200
        assert client.put(f"/bookings/{booking_id}/cancel", headers=auth_headers).status_code == 400

    def test_other_branch_cannot_see_booking(self, client: TestClient, auth_headers,
                                             other_branch_auth_headers, room_101, sample_guest):
        booking_id = client.post(
            "/bookings", json=booking_body(sample_guest, [room_101]), headers=auth_headers
        ).json()["data"]["booking_id"]

        assert client.put(f"/bookings/{booking_id}/checkin", headers=other_branch_auth_headers).status_code == 404
        assert client.get("/bookings", headers=other_branch_auth_headers).json()["data"] == []

    def test_unknown_route_envelope(self, client: TestClient, auth_headers):
        response = client.get("/nope", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["success"] is False
