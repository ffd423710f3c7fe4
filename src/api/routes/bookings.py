from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, require_role
from src.api.errors import http_error
from src.api.schemas.schemas import BookingCreateRequest, BookingResponse
from src.application.booking_service import BookingService
from src.domain.exceptions import MarketplaceError
from src.infrastructure.db.models import Booking, User, UserRole

router = APIRouter(prefix="/api/client/bookings", tags=["bookings"])

client_only = require_role(UserRole.CLIENT)


def _booking(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        service_id=booking.service_id,
        event_date=booking.event_date,
        location=booking.location,
        attendees=booking.attendees,
        special_requests=booking.special_requests,
        status=booking.status.value,
        created_at=booking.created_at,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
):
    service = BookingService(db)

    try:
        booking = service.create_booking(
            user_id=user.id,
            service_id=request.service_id,
            event_date=request.event_date,
            location=request.location,
            attendees=request.attendees,
            special_requests=request.special_requests,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return _booking(booking)


@router.get("", response_model=list[BookingResponse])
def list_bookings(
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
):
    try:
        bookings = BookingService(db).list_bookings(user.id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return [_booking(booking) for booking in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    user: User = Depends(client_only),
    db: Session = Depends(get_db),
):
    try:
        booking = BookingService(db).get_booking(user.id, booking_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return _booking(booking)
