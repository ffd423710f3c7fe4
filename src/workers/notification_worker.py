import json
import logging
import signal
import time

from sqlalchemy.orm import Session

from src import config
from src.domain.exceptions import NotFoundError
from src.infrastructure.db.models import OutboxEvent
from src.infrastructure.db.session import SessionLocal
from src.infrastructure.notifications.email import SmtpEmailSender, SmtpSettings
from src.infrastructure.notifications.notifier import (
    NEW_BOOKING_VENDOR_EMAIL,
    PAYMENT_COMPLETED_VENDOR_EMAIL,
    EmailNotifier,
    Notifier,
)
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository
from src.infrastructure.repositories.outbox_repository import STATUS_PENDING, OutboxRepository
from src.infrastructure.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)


class NotificationWorker:
    """
    Drains PENDING outbox events oldest first and delivers them
    through the given notifier. Each event is committed on its own.
    """

    def __init__(self, db: Session, notifier: Notifier, max_attempts: int = config.OUTBOX_MAX_ATTEMPTS):
        self.db = db
        self.notifier = notifier
        self.max_attempts = max_attempts
        self.outbox = OutboxRepository(db)
        self.payments = PaymentRepository(db)
        self.bookings = BookingRepository(db)
        self.marketplace = MarketplaceRepository(db)

    def run_once(self, limit: int = config.OUTBOX_BATCH_SIZE) -> int:
        """Returns the number of events delivered."""
        delivered = 0
        for event in self.outbox.list_by_status(STATUS_PENDING, limit):
            try:
                self._deliver(event)
            except Exception as exc:
                logger.exception("Delivery of outbox event %s (%s) failed", event.id, event.event_type)
                self.db.rollback()
                self.outbox.mark_attempt_failed(event, str(exc), self.max_attempts)
            else:
                self.outbox.mark_published(event)
                delivered += 1
            self.db.commit()
        return delivered

    def _deliver(self, event: OutboxEvent) -> None:
        payload = json.loads(event.payload)
        booking = self.bookings.get_by_id(payload["booking_id"])
        vendor = self.marketplace.get_vendor(payload["vendor_id"])
        if not booking or not vendor:
            raise NotFoundError(f"Booking or vendor for outbox event {event.id} no longer exists")

        if event.event_type == PAYMENT_COMPLETED_VENDOR_EMAIL:
            payment = self.payments.get_by_id(payload["payment_id"])
            if not payment:
                raise NotFoundError(f"Payment {payload['payment_id']} no longer exists")
            self.notifier.send_payment_completion_to_vendor(payment, booking, vendor)
        elif event.event_type == NEW_BOOKING_VENDOR_EMAIL:
            self.notifier.send_new_booking_to_vendor(booking, vendor)
        else:
            raise ValueError(f"Unsupported outbox event type {event.event_type}")

        logger.info("Delivered outbox event %s (%s)", event.id, event.event_type)


_running = True


def _stop(signum, frame) -> None:
    global _running
    logger.info("Received signal %s; stopping after the current batch", signum)
    _running = False


def main() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    sender = SmtpEmailSender(SmtpSettings.from_config())
    logger.info("Notification worker started (poll every %.1fs)", config.OUTBOX_POLL_INTERVAL)

    while _running:
        db = SessionLocal()
        try:
            delivered = NotificationWorker(db, EmailNotifier(db, sender)).run_once()
        finally:
            db.close()
        if delivered:
            logger.info("Delivered %s notification(s)", delivered)
        time.sleep(config.OUTBOX_POLL_INTERVAL)


if __name__ == "__main__":
    main()
