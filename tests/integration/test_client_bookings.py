from src.application.booking_service import BookingService
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking, Client, UserRole, VendorStatus


def test_client_creates_pending_booking(client, marketplace, auth_headers):
    response = client.post(
        "/api/client/bookings",
        json={
            "serviceId": marketplace["service"].id,
            "eventDate": "2026-12-05T14:00:00Z",
            "location": "Bahir Dar",
            "attendees": 80,
            "specialRequests": "Drone shots",
        },
        headers=auth_headers(marketplace["client_user"]),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == BookingStatus.PENDING.value
    assert data["location"] == "Bahir Dar"
    assert data["specialRequests"] == "Drone shots"


def test_booking_requires_fields(client, marketplace, auth_headers):
    response = client.post(
        "/api/client/bookings",
        json={"serviceId": marketplace["service"].id},
        headers=auth_headers(marketplace["client_user"]),
    )
    assert response.status_code == 400


def test_booking_unknown_service(client, marketplace, auth_headers):
    response = client.post(
        "/api/client/bookings",
        json={"serviceId": "missing", "eventDate": "2026-12-05T14:00:00Z", "location": "Adama"},
        headers=auth_headers(marketplace["client_user"]),
    )
    assert response.status_code == 404


def test_booking_of_unapproved_vendor_is_forbidden(client, db_session, marketplace, auth_headers):
    marketplace["vendor"].status = VendorStatus.SUSPENDED
    db_session.commit()

    response = client.post(
        "/api/client/bookings",
        json={
            "serviceId": marketplace["service"].id,
            "eventDate": "2026-12-05T14:00:00Z",
            "location": "Adama",
        },
        headers=auth_headers(marketplace["client_user"]),
    )
    assert response.status_code == 403


def test_list_and_get_own_bookings(client, marketplace, auth_headers):
    headers = auth_headers(marketplace["client_user"])

    listed = client.get("/api/client/bookings", headers=headers)
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [marketplace["booking"].id]

    fetched = client.get(f"/api/client/bookings/{marketplace['booking'].id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["attendees"] == 120


def test_other_clients_booking_is_forbidden(client, db_session, marketplace, user_factory, auth_headers):
    other = user_factory("other@example.com", UserRole.CLIENT)
    db_session.add(Client(user_id=other.id))
    db_session.commit()

    response = client.get(
        f"/api/client/bookings/{marketplace['booking'].id}",
        headers=auth_headers(other),
    )
    assert response.status_code == 403


def test_unknown_booking(client, marketplace, auth_headers):
    response = client.get("/api/client/bookings/missing", headers=auth_headers(marketplace["client_user"]))
    assert response.status_code == 404


def test_confirm_follows_the_stored_booking_status(db_session, marketplace):
    service = BookingService(db_session)
    booking_id = marketplace["booking"].id

    assert service.confirm_if_pending(booking_id) is True
    assert service.confirm_if_pending(booking_id) is False

    marketplace["booking"].status = BookingStatus.COMPLETED
    db_session.commit()
    assert service.confirm_if_pending(booking_id) is False
    db_session.expire_all()
    assert db_session.get(Booking, booking_id).status == BookingStatus.COMPLETED


def test_confirm_unknown_booking(db_session, marketplace):
    assert BookingService(db_session).confirm_if_pending("missing") is False
