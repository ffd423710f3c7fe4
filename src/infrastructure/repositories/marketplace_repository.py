# src/infrastructure/repositories/marketplace_repository.py

from dataclasses import dataclass

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import (
    Booking,
    Client,
    PayoutSubaccount,
    Service,
    ServiceCategory,
    SubaccountType,
    User,
    Vendor,
)


@dataclass
class BookingDetails:
    """Everything the vendor emails and payment responses show about a booking."""

    booking: Booking
    service: Service
    vendor: Vendor
    vendor_user: User
    client_user: User


class MarketplaceRepository:
    """Read access to the reference data the payment flow consumes."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def get_client_by_user_id(self, user_id: str) -> Client | None:
        stmt = select(Client).where(Client.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_vendor(self, vendor_id: str) -> Vendor | None:
        return self.db.get(Vendor, vendor_id)

    def get_vendor_by_user_id(self, user_id: str) -> Vendor | None:
        stmt = select(Vendor).where(Vendor.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_service(self, service_id: str) -> Service | None:
        return self.db.get(Service, service_id)

    def get_category(self, category_id: str) -> ServiceCategory | None:
        return self.db.get(ServiceCategory, category_id)

    def get_admin_subaccount(self) -> PayoutSubaccount | None:
        stmt = (
            select(PayoutSubaccount)
            .where(PayoutSubaccount.type == SubaccountType.ADMIN)
            .order_by(PayoutSubaccount.created_at)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_admin_subaccount(self, account_id: str) -> PayoutSubaccount:
        subaccount = PayoutSubaccount(account_id=account_id, type=SubaccountType.ADMIN)
        self.db.add(subaccount)
        return subaccount

    def load_booking_details(self, booking_id: str) -> BookingDetails | None:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            return None

        service = self.db.get(Service, booking.service_id)
        vendor = self.db.get(Vendor, service.vendor_id)
        vendor_user = self.db.get(User, vendor.user_id)
        client = self.db.get(Client, booking.client_id)
        client_user = self.db.get(User, client.user_id)
        return BookingDetails(
            booking=booking,
            service=service,
            vendor=vendor,
            vendor_user=vendor_user,
            client_user=client_user,
        )
