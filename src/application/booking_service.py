import logging
from datetime import datetime

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    MissingFieldsError,
    NotFoundError,
    OwnershipError,
    ProfileNotFoundError,
    ServiceUnavailableError,
)
from src.domain.state_machine import BookingStatus, can_transition_booking
from src.infrastructure.db.models import Booking, VendorStatus
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository

logger = logging.getLogger(__name__)


class BookingService:
    """Application service coordinating booking workflow."""

    def __init__(self, db: Session):
        self.db = db
        self.booking_repository = BookingRepository(db)
        self.marketplace = MarketplaceRepository(db)

    def create_booking(
        self,
        user_id: str,
        service_id: str | None,
        event_date: datetime | None,
        location: str | None,
        attendees: int | None = None,
        special_requests: str | None = None,
    ) -> Booking:
        client = self.marketplace.get_client_by_user_id(user_id)
        if not client:
            raise ProfileNotFoundError("Client profile not found")

        if not service_id or not event_date or not location:
            raise MissingFieldsError("Service ID, event date and location are required")
        if attendees is not None and attendees <= 0:
            raise MissingFieldsError("Attendees must be a positive number")

        service = self.marketplace.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found")

        vendor = self.marketplace.get_vendor(service.vendor_id)
        if vendor.status != VendorStatus.APPROVED:
            raise ServiceUnavailableError("This service is not available")

        booking = self.booking_repository.create_booking(
            client_id=client.id,
            service_id=service.id,
            event_date=event_date,
            location=location,
            attendees=attendees,
            special_requests=special_requests,
        )
        self.db.flush()
        logger.info("Booking %s created for service %s", booking.id, service.id)
        return booking

    def list_bookings(self, user_id: str) -> list[Booking]:
        client = self.marketplace.get_client_by_user_id(user_id)
        if not client:
            raise ProfileNotFoundError("Client profile not found")
        return self.booking_repository.list_for_client(client.id)

    def get_booking(self, user_id: str, booking_id: str) -> Booking:
        client = self.marketplace.get_client_by_user_id(user_id)
        if not client:
            raise ProfileNotFoundError("Client profile not found")

        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.client_id != client.id:
            raise OwnershipError("Booking does not belong to this client")
        return booking

    def confirm_if_pending(self, booking_id: str) -> bool:
        """
        Moves a PENDING booking to CONFIRMED.
        Returns False when another caller already moved it.
        """
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking or not can_transition_booking(booking.status, BookingStatus.CONFIRMED):
            return False

        # The status read above can be stale; the update re-checks it.
        confirmed = self.booking_repository.transition_if_current(
            booking_id,
            expected_status=booking.status,
            new_status=BookingStatus.CONFIRMED,
        )
        self.db.commit()
        return confirmed
