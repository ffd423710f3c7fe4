import json
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from src.application.booking_service import BookingService
from src.application.payment_service import is_transaction_reference
from src.domain.exceptions import (
    GatewayError,
    MalformedWebhookError,
    MissingFieldsError,
    NotFoundError,
    OwnershipError,
    PaymentVerificationError,
)
from src.domain.gateway_status import map_gateway_status
from src.domain.state_machine import PaymentStatus
from src.infrastructure.db.models import Payment
from src.infrastructure.gateway.chapa import PaymentGateway
from src.infrastructure.notifications.notifier import Notifier
from src.infrastructure.repositories.marketplace_repository import (
    BookingDetails,
    MarketplaceRepository,
)
from src.infrastructure.repositories.payment_repository import PaymentRepository
from src.infrastructure.security.webhook import verify_webhook_signature

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    payment: Payment
    status: PaymentStatus
    details: BookingDetails | None = None
    gateway_data: Any = field(default=None)


class PaymentReconciler:
    """
    Applies gateway outcomes to a payment and its booking.

    Two triggers feed the same transition: the client polling
    verify() and the gateway calling the webhook. Neither is serialized
    against the other. The payment status write is unconditional; the
    booking confirm is a conditional update so only one caller flips it.
    """

    def __init__(self, db: Session, gateway: PaymentGateway | None, notifier: Notifier):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier
        self.payments = PaymentRepository(db)
        self.marketplace = MarketplaceRepository(db)
        self.booking_service = BookingService(db)

    def verify(self, payment_id: str | None, tx_ref: str | None, user_id: str) -> ReconciliationResult:
        if not payment_id or not tx_ref:
            raise MissingFieldsError("Payment ID and transaction reference are required")
        if not is_transaction_reference(tx_ref):
            logger.warning("Rejected malformed tx_ref %r for payment %s", tx_ref, payment_id)
            raise MissingFieldsError("Invalid transaction reference")

        logger.info("Verifying payment %s (tx_ref=%s) for user %s", payment_id, tx_ref, user_id)

        payment = self.payments.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if payment.user_id != user_id:
            raise OwnershipError("Payment does not belong to this user")

        try:
            verification = self.gateway.verify_transaction(tx_ref)
        except GatewayError as exc:
            logger.error("Gateway verification failed for payment %s: %s", payment_id, exc)
            raise PaymentVerificationError("Payment verification failed") from exc

        new_status = map_gateway_status(verification.status)
        details = self._apply(payment, new_status)
        return ReconciliationResult(
            payment=payment,
            status=new_status,
            details=details,
            gateway_data=verification.data,
        )

    def handle_webhook(
        self,
        raw_body: bytes,
        signature: str | None,
        secret: str | None,
    ) -> ReconciliationResult:
        # Nothing in the body is trusted before the signature checks out.
        verify_webhook_signature(raw_body, signature, secret)

        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            raise MalformedWebhookError("Malformed webhook payload") from exc
        if not isinstance(payload, dict):
            raise MalformedWebhookError("Malformed webhook payload")

        tx_ref = payload.get("tx_ref")
        if not tx_ref:
            logger.error("Webhook payload is missing tx_ref")
            raise MalformedWebhookError("Missing tx_ref")

        payment = self.payments.get_by_transaction_id(tx_ref)
        if not payment:
            logger.error("Payment not found for tx_ref %s", tx_ref)
            raise NotFoundError("Payment not found")

        raw_status = payload.get("status")
        new_status = map_gateway_status(raw_status)
        details = self._apply(payment, new_status)
        logger.info("Webhook processed for payment %s, status updated to %s", payment.id, new_status.value)
        return ReconciliationResult(payment=payment, status=new_status, details=details)

    def _apply(self, payment: Payment, new_status: PaymentStatus) -> BookingDetails | None:
        self.payments.update_status(payment, new_status)
        self.db.commit()

        if payment.booking_id is None:
            return None

        if new_status == PaymentStatus.COMPLETED:
            if self.booking_service.confirm_if_pending(payment.booking_id):
                logger.info("Booking %s confirmed by payment %s", payment.booking_id, payment.id)
            else:
                logger.info(
                    "Booking %s was not PENDING; left unchanged for payment %s",
                    payment.booking_id,
                    payment.id,
                )

        details = self.marketplace.load_booking_details(payment.booking_id)
        if details and new_status == PaymentStatus.COMPLETED:
            self._notify(payment, details)
        return details

    def _notify(self, payment: Payment, details: BookingDetails) -> None:
        # Every COMPLETED observation notifies; repeats are not deduplicated.
        try:
            self.notifier.send_payment_completion_to_vendor(payment, details.booking, details.vendor)
        except Exception:
            logger.exception("Payment completion notification failed for payment %s", payment.id)

        try:
            self.notifier.send_new_booking_to_vendor(details.booking, details.vendor)
        except Exception:
            logger.exception("New booking notification failed for booking %s", details.booking.id)
