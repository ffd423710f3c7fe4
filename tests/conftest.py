# tests/conftest.py

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("CHAPA_SECRET_KEY", "CHASECK_TEST-secret")
os.environ.setdefault("CHAPA_WEBHOOK_SECRET", "test-webhook-secret")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_gateway, get_notifier
from src.domain.exceptions import GatewayError
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import (
    Base,
    Booking,
    Client,
    PayoutSubaccount,
    Service,
    ServiceCategory,
    SubaccountType,
    User,
    UserRole,
    Vendor,
    VendorStatus,
)
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.gateway.chapa import CheckoutSession, TransactionVerification
from src.infrastructure.security.tokens import create_access_token
from src.main import app


class FakeGateway:
    """Records checkout requests and answers verifications from a preset status."""

    def __init__(self):
        self.checkout_requests = []
        self.verified_refs = []
        self.verify_status = "success"
        self.verify_data = {"status": "success"}
        self.fail_initialize = False
        self.fail_verify = False

    def initialize_transaction(self, request):
        self.checkout_requests.append(request)
        if self.fail_initialize:
            raise GatewayError("Gateway returned HTTP 400")
        return CheckoutSession(checkout_url=f"https://checkout.chapa.co/pay/{request.tx_ref}")

    def verify_transaction(self, tx_ref):
        self.verified_refs.append(tx_ref)
        if self.fail_verify:
            raise GatewayError("Gateway request failed: timed out")
        return TransactionVerification(status=self.verify_status, data=self.verify_data)


class RecordingNotifier:
    def __init__(self):
        self.calls = []
        self.fail = False

    def send_payment_completion_to_vendor(self, payment, booking, vendor):
        self.calls.append(("payment_completed", payment.id, booking.id, vendor.id))
        if self.fail:
            raise RuntimeError("SMTP connection refused")

    def send_new_booking_to_vendor(self, booking, vendor):
        self.calls.append(("new_booking", booking.id, vendor.id))
        if self.fail:
            raise RuntimeError("SMTP connection refused")


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db_session, gateway, notifier):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def outbox_client(db_session, gateway):
    """Client that keeps the real outbox notifier."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def auth_headers():
    return bearer


def make_user(db, email: str, role: UserRole, first_name: str = "Test", last_name: str = "User", **extra) -> User:
    user = User(email=email, first_name=first_name, last_name=last_name, role=role, **extra)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def user_factory(db_session):
    def _make(email: str, role: UserRole, **extra) -> User:
        return make_user(db_session, email, role, **extra)

    return _make


@pytest.fixture
def marketplace(db_session):
    """Admin subaccount, approved vendor with one service, a client and a PENDING booking."""
    db = db_session
    admin = make_user(db, "admin@example.com", UserRole.ADMIN, "Platform", "Admin")
    db.add(PayoutSubaccount(account_id="admin-sub", type=SubaccountType.ADMIN))

    category = ServiceCategory(name="Photography", description="Photo and video")
    db.add(category)
    db.commit()

    vendor_user = make_user(db, "vendor@example.com", UserRole.VENDOR, "Selam", "Tesfaye", phone="+251911000001")
    vendor = Vendor(
        user_id=vendor_user.id,
        business_name="Golden Lens Studio",
        service_type="Photography",
        status=VendorStatus.APPROVED,
        rating=4.5,
        chapa_subaccount_id="vendor-sub",
        category_id=category.id,
    )
    db.add(vendor)
    db.commit()

    service = Service(
        name="Full Day Photography",
        description="Ceremony and reception",
        price=15000,
        category_id=category.id,
        vendor_id=vendor.id,
    )
    db.add(service)

    client_user = make_user(db, "client@example.com", UserRole.CLIENT, "Hanna", "Girma", phone="+251911000002")
    client_profile = Client(user_id=client_user.id)
    db.add(client_profile)
    db.commit()

    booking = Booking(
        client_id=client_profile.id,
        service_id=service.id,
        event_date=datetime.now(timezone.utc) + timedelta(days=90),
        location="Addis Ababa",
        attendees=120,
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()

    return {
        "admin": admin,
        "category": category,
        "vendor_user": vendor_user,
        "vendor": vendor,
        "service": service,
        "client_user": client_user,
        "client": client_profile,
        "booking": booking,
    }
