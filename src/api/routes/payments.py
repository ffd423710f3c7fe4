import logging

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from src import config
from src.api.dependencies import (
    get_db,
    get_gateway,
    get_notifier,
    raw_body,
    require_role,
)
from src.api.errors import http_error
from src.api.schemas.schemas import (
    PaymentBookingSummary,
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentItem,
    PaymentListResponse,
    PaymentPagination,
    PaymentServiceSummary,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    VendorNameSummary,
    VendorRefSummary,
    VerifiedBookingSummary,
    VerifiedServiceSummary,
)
from src.application.payment_service import PaymentInitiator, list_payments
from src.application.reconciliation import PaymentReconciler
from src.domain.exceptions import (
    InvalidWebhookSignatureError,
    MalformedWebhookError,
    MarketplaceError,
    NotFoundError,
)
from src.infrastructure.db.models import Payment, User, UserRole
from src.infrastructure.gateway.chapa import PaymentGateway
from src.infrastructure.notifications.notifier import Notifier
from src.infrastructure.repositories.marketplace_repository import (
    BookingDetails,
    MarketplaceRepository,
)

router = APIRouter(prefix="/api/client/payment", tags=["payments"])
logger = logging.getLogger(__name__)

client_only = require_role(UserRole.CLIENT)


def _payment_item(payment: Payment, details: BookingDetails | None) -> PaymentItem:
    booking = None
    if details:
        booking = PaymentBookingSummary(
            id=details.booking.id,
            event_date=details.booking.event_date,
            location=details.booking.location,
            status=details.booking.status.value,
            service=PaymentServiceSummary(
                name=details.service.name,
                price=details.service.price,
                vendor=VendorRefSummary(
                    id=details.vendor.id,
                    business_name=details.vendor.business_name,
                ),
            ),
        )
    return PaymentItem(
        id=payment.id,
        amount=payment.amount,
        status=payment.status.value,
        method=payment.method,
        transaction_id=payment.transaction_id,
        created_at=payment.created_at,
        updated_at=payment.updated_at,
        booking=booking,
    )


@router.post("/initiate", response_model=PaymentInitiateResponse)
def initiate_payment(
    request: PaymentInitiateRequest,
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
):
    initiator = PaymentInitiator(db, gateway)
    try:
        result = initiator.initiate(
            user=user,
            amount=request.amount,
            vendor_id=request.vendor_id,
            booking_id=request.booking_id,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return PaymentInitiateResponse(
        checkout_url=result.checkout_url,
        payment_id=result.payment_id,
        tx_ref=result.tx_ref,
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(
    request: PaymentVerifyRequest,
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    reconciler = PaymentReconciler(db, gateway, notifier)
    try:
        result = reconciler.verify(
            payment_id=request.payment_id,
            tx_ref=request.tx_ref,
            user_id=user.id,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    booking = None
    if result.details:
        booking = VerifiedBookingSummary(
            id=result.details.booking.id,
            status=result.details.booking.status.value,
            event_date=result.details.booking.event_date,
            service=VerifiedServiceSummary(
                name=result.details.service.name,
                vendor=VendorNameSummary(business_name=result.details.vendor.business_name),
            ),
        )

    return PaymentVerifyResponse(
        message="Payment verified",
        payment_id=result.payment.id,
        status=result.status.value,
        amount=result.payment.amount,
        created_at=result.payment.created_at,
        updated_at=result.payment.updated_at,
        booking=booking,
        chapa_data=result.gateway_data,
    )


@router.post("/webhook", response_class=PlainTextResponse)
def handle_webhook(
    body: bytes = Depends(raw_body),
    chapa_signature: str | None = Header(default=None),
    x_chapa_signature: str | None = Header(default=None),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    # The caller is the gateway: plain-text status lines only.
    reconciler = PaymentReconciler(db, gateway=None, notifier=notifier)
    try:
        reconciler.handle_webhook(
            raw_body=body,
            signature=chapa_signature or x_chapa_signature,
            secret=config.chapa_webhook_secret(),
        )
    except InvalidWebhookSignatureError:
        return PlainTextResponse("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)
    except MalformedWebhookError as exc:
        return PlainTextResponse(f"Bad Request: {exc}", status_code=status.HTTP_400_BAD_REQUEST)
    except NotFoundError:
        return PlainTextResponse("Payment not found", status_code=status.HTTP_404_NOT_FOUND)
    except Exception:
        logger.exception("Webhook processing error")
        db.rollback()
        return PlainTextResponse(
            "Webhook processing failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return PlainTextResponse("Webhook processed successfully")


@router.get("", response_model=PaymentListResponse)
def get_payments(
    page: int = 1,
    limit: int = 10,
    status_filter: str | None = Query(default=None, alias="status"),
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
):
    try:
        result = list_payments(
            db,
            user_id=user.id,
            page=page,
            limit=limit,
            status=status_filter,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    marketplace = MarketplaceRepository(db)
    items = [
        _payment_item(
            payment,
            marketplace.load_booking_details(payment.booking_id) if payment.booking_id else None,
        )
        for payment in result.payments
    ]
    return PaymentListResponse(
        payments=items,
        pagination=PaymentPagination(
            total=result.total,
            page=result.page,
            limit=result.limit,
            pages=result.pages,
        ),
    )
