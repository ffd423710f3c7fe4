from datetime import datetime, timedelta, timezone

import pytest

from src.domain.state_machine import PaymentStatus
from src.infrastructure.db.models import Payment, UserRole


@pytest.fixture
def payments(db_session, marketplace):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    statuses = [PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.PENDING]
    created = []
    for index, payment_status in enumerate(statuses):
        payment = Payment(
            amount=1000 * (index + 1),
            status=payment_status,
            method="CHAPA",
            transaction_id=f"payment-{index}-ref",
            booking_id=marketplace["booking"].id,
            user_id=marketplace["client_user"].id,
            recipient_id=marketplace["vendor_user"].id,
            client_id=marketplace["client"].id,
            vendor_id=marketplace["vendor"].id,
            created_at=base + timedelta(days=index),
        )
        db_session.add(payment)
        created.append(payment)
    db_session.commit()
    return created


def test_lists_own_payments_newest_first(client, marketplace, payments, auth_headers):
    response = client.get("/api/client/payment", headers=auth_headers(marketplace["client_user"]))

    assert response.status_code == 200
    data = response.json()
    assert [item["amount"] for item in data["payments"]] == [3000, 2000, 1000]
    assert data["pagination"] == {"total": 3, "page": 1, "limit": 10, "pages": 1}

    item = data["payments"][0]
    assert item["transactionId"] == "payment-2-ref"
    assert item["booking"]["location"] == "Addis Ababa"
    assert item["booking"]["service"]["vendor"]["businessName"] == "Golden Lens Studio"


def test_pagination(client, marketplace, payments, auth_headers):
    response = client.get(
        "/api/client/payment",
        params={"page": 2, "limit": 2},
        headers=auth_headers(marketplace["client_user"]),
    )
    data = response.json()
    assert [item["amount"] for item in data["payments"]] == [1000]
    assert data["pagination"]["pages"] == 2


def test_status_filter(client, marketplace, payments, auth_headers):
    response = client.get(
        "/api/client/payment",
        params={"status": "FAILED"},
        headers=auth_headers(marketplace["client_user"]),
    )
    data = response.json()
    assert [item["status"] for item in data["payments"]] == ["FAILED"]
    assert data["pagination"]["total"] == 1


def test_unknown_status_filter_is_ignored(client, marketplace, payments, auth_headers):
    response = client.get(
        "/api/client/payment",
        params={"status": "SETTLED"},
        headers=auth_headers(marketplace["client_user"]),
    )
    assert response.json()["pagination"]["total"] == 3


def test_requires_client_profile(client, marketplace, user_factory, auth_headers):
    response = client.get(
        "/api/client/payment",
        headers=auth_headers(user_factory("bare@example.com", UserRole.CLIENT)),
    )
    assert response.status_code == 400
