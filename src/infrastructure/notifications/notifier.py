# src/infrastructure/notifications/notifier.py

import logging
from typing import Protocol
from uuid import uuid4

from sqlalchemy.orm import Session

from src import config
from src.domain.exceptions import NotFoundError
from src.infrastructure.db.models import Booking, Payment, Vendor
from src.infrastructure.notifications.email import SmtpEmailSender, render_template
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository
from src.infrastructure.repositories.outbox_repository import OutboxRepository

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED_VENDOR_EMAIL = "PAYMENT_COMPLETED_VENDOR_EMAIL"
NEW_BOOKING_VENDOR_EMAIL = "NEW_BOOKING_VENDOR_EMAIL"


class Notifier(Protocol):
    def send_payment_completion_to_vendor(
        self, payment: Payment, booking: Booking, vendor: Vendor
    ) -> None: ...

    def send_new_booking_to_vendor(self, booking: Booking, vendor: Vendor) -> None: ...


class OutboxNotifier:
    """
    Records each notification as an outbox event in its own commit.
    The notification worker delivers them.
    """

    def __init__(self, db: Session):
        self.db = db
        self.outbox = OutboxRepository(db)

    def send_payment_completion_to_vendor(
        self, payment: Payment, booking: Booking, vendor: Vendor
    ) -> None:
        self._enqueue(
            aggregate_type="payment",
            aggregate_id=payment.id,
            event_type=PAYMENT_COMPLETED_VENDOR_EMAIL,
            payload={
                "payment_id": payment.id,
                "booking_id": booking.id,
                "vendor_id": vendor.id,
            },
        )

    def send_new_booking_to_vendor(self, booking: Booking, vendor: Vendor) -> None:
        self._enqueue(
            aggregate_type="booking",
            aggregate_id=booking.id,
            event_type=NEW_BOOKING_VENDOR_EMAIL,
            payload={
                "booking_id": booking.id,
                "vendor_id": vendor.id,
            },
        )

    def _enqueue(self, aggregate_type: str, aggregate_id: str, event_type: str, payload: dict) -> None:
        # One event per observation; repeated completions are delivered again.
        dedupe_key = f"{aggregate_type}:{aggregate_id}:{event_type}:{uuid4().hex}"
        try:
            self.outbox.add_event(
                aggregate_type=aggregate_type,
                aggregate_id=aggregate_id,
                event_type=event_type,
                payload=payload,
                dedupe_key=dedupe_key,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Queued %s for %s %s", event_type, aggregate_type, aggregate_id)


class EmailNotifier:
    """Renders and sends vendor emails synchronously."""

    def __init__(self, db: Session, sender: SmtpEmailSender):
        self.sender = sender
        self.marketplace = MarketplaceRepository(db)

    def send_payment_completion_to_vendor(
        self, payment: Payment, booking: Booking, vendor: Vendor
    ) -> None:
        details = self._details(booking)
        html = render_template(
            "payment_completed_vendor.html",
            payment=payment,
            booking=details.booking,
            service=details.service,
            client_user=details.client_user,
            vendor_user=details.vendor_user,
            currency=config.PAYMENT_CURRENCY,
        )
        self.sender.send(details.vendor_user.email, "Payment Received for Booking", html)

    def send_new_booking_to_vendor(self, booking: Booking, vendor: Vendor) -> None:
        details = self._details(booking)
        html = render_template(
            "new_booking_vendor.html",
            booking=details.booking,
            service=details.service,
            client_user=details.client_user,
            vendor_user=details.vendor_user,
        )
        self.sender.send(details.vendor_user.email, "New Booking Received", html)

    def _details(self, booking: Booking):
        details = self.marketplace.load_booking_details(booking.id)
        if details is None:
            raise NotFoundError(f"Booking {booking.id} not found")
        return details
