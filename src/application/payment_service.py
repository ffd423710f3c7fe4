import logging
import math
import re
from dataclasses import dataclass
from urllib.parse import quote
from uuid import uuid4

from sqlalchemy.orm import Session

from src import config
from src.domain.exceptions import (
    GatewayError,
    MissingFieldsError,
    NotFoundError,
    OwnershipError,
    PaymentInitiationError,
    PayoutAccountsNotConfiguredError,
    ProfileNotFoundError,
    VendorMismatchError,
)
from src.domain.splits import compute_split, split_instruction
from src.domain.state_machine import PaymentStatus
from src.infrastructure.db.models import Payment, User
from src.infrastructure.gateway.chapa import CheckoutRequest, PaymentGateway
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository
from src.infrastructure.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)

PAYMENT_METHOD = "CHAPA"


@dataclass
class CheckoutResult:
    checkout_url: str
    payment_id: str
    tx_ref: str


@dataclass
class PaymentPage:
    payments: list[Payment]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


_TRANSACTION_REFERENCE = re.compile(r"payment-[A-Za-z0-9-]+")


def new_transaction_reference(payment_id: str) -> str:
    return f"payment-{payment_id}-{uuid4()}"


def is_transaction_reference(value: str) -> bool:
    """True for references shaped like the ones new_transaction_reference issues."""
    return _TRANSACTION_REFERENCE.fullmatch(value) is not None


def payment_return_url(tx_ref: str, payment_id: str) -> str:
    return (
        f"{config.FRONTEND_URL}/dashboard/payment/status"
        f"?tx_ref={quote(tx_ref, safe='')}&payment_id={quote(payment_id, safe='')}"
    )


class PaymentInitiator:
    """
    Creates a PENDING payment for a client's booking and opens a hosted
    checkout session for it with the platform/vendor split.
    """

    def __init__(self, db: Session, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.marketplace = MarketplaceRepository(db)
        self.bookings = BookingRepository(db)
        self.payments = PaymentRepository(db)

    def initiate(
        self,
        user: User,
        amount: float | None,
        vendor_id: str | None,
        booking_id: str | None,
    ) -> CheckoutResult:
        if not amount or amount <= 0 or not vendor_id or not booking_id:
            raise MissingFieldsError("Amount, vendor ID and booking ID are required")

        client = self.marketplace.get_client_by_user_id(user.id)
        if not client:
            raise ProfileNotFoundError("Client profile not found")

        booking = self.bookings.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.client_id != client.id:
            raise OwnershipError("Booking does not belong to this client")

        service = self.marketplace.get_service(booking.service_id)
        if service.vendor_id != vendor_id:
            raise VendorMismatchError("Vendor ID does not match the booking's vendor")

        vendor = self.marketplace.get_vendor(vendor_id)
        admin_account = self.marketplace.get_admin_subaccount()
        if not vendor.chapa_subaccount_id or not admin_account:
            raise PayoutAccountsNotConfiguredError("Payment accounts not configured")

        split = compute_split(amount)
        payment = self.payments.create_pending(
            amount=amount,
            method=PAYMENT_METHOD,
            user_id=user.id,
            recipient_id=vendor.user_id,
            booking_id=booking.id,
            client_id=client.id,
            vendor_id=vendor.id,
            admin_split=split.admin_split,
            vendor_split=split.vendor_split,
        )
        self.db.commit()

        tx_ref = new_transaction_reference(payment.id)
        request = CheckoutRequest(
            amount=amount,
            currency=config.PAYMENT_CURRENCY,
            email=user.email,
            tx_ref=tx_ref,
            callback_url=f"{config.BACKEND_URL}/api/client/payment/verify",
            return_url=payment_return_url(tx_ref, payment.id),
            split=split_instruction(admin_account.account_id, vendor.chapa_subaccount_id),
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            phone_number=user.phone or "",
            title=f"Payment for {service.name}",
            description=f"Wedding service booking payment for {service.name}",
        )

        try:
            session = self.gateway.initialize_transaction(request)
        except GatewayError as exc:
            logger.error(
                "Checkout initialization failed for payment %s (admin account %s, vendor account %s): %s",
                payment.id,
                admin_account.account_id,
                vendor.chapa_subaccount_id,
                exc,
            )
            self.payments.update_status(payment, PaymentStatus.FAILED)
            self.db.commit()
            raise PaymentInitiationError("Payment initiation failed") from exc

        payment.transaction_id = tx_ref
        self.db.commit()
        logger.info("Payment %s initiated with reference %s", payment.id, tx_ref)

        return CheckoutResult(
            checkout_url=session.checkout_url,
            payment_id=payment.id,
            tx_ref=tx_ref,
        )


def list_payments(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
) -> PaymentPage:
    if not MarketplaceRepository(db).get_client_by_user_id(user_id):
        raise ProfileNotFoundError("Client profile not found")

    page = max(page, 1)
    limit = max(limit, 1)

    # Unrecognised status filters are ignored.
    status_filter = None
    if status in PaymentStatus.__members__:
        status_filter = PaymentStatus(status)

    payments, total = PaymentRepository(db).list_for_user(
        user_id=user_id,
        status=status_filter,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return PaymentPage(payments=payments, total=total, page=page, limit=limit)
