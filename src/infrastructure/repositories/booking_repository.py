# src/infrastructure/repositories/booking_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from src.infrastructure.db.models import Booking
from src.domain.state_machine import BookingStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_client(self, client_id: str) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.client_id == client_id)
            .order_by(Booking.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_booking(
        self,
        client_id: str,
        service_id: str,
        event_date: datetime,
        location: str,
        attendees: int | None = None,
        special_requests: str | None = None,
    ) -> Booking:

        booking = Booking(
            client_id=client_id,
            service_id=service_id,
            event_date=event_date,
            location=location,
            attendees=attendees,
            special_requests=special_requests,
            status=BookingStatus.PENDING,
        )

        self.db.add(booking)
        return booking

    def transition_if_current(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        new_status: BookingStatus,
    ) -> bool:
        """
        UPDATE ... WHERE status = expected_status
        Only one concurrent caller can win the swap.
        """

        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .where(Booking.status == expected_status)
            .values(status=new_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def list_for_services(self, service_ids: list[str]) -> dict[str, list[Booking]]:
        """Bookings grouped by service id, newest first."""
        grouped: dict[str, list[Booking]] = {service_id: [] for service_id in service_ids}
        if not service_ids:
            return grouped

        stmt = (
            select(Booking)
            .where(Booking.service_id.in_(service_ids))
            .order_by(Booking.created_at.desc())
        )
        for booking in self.db.execute(stmt).scalars():
            grouped[booking.service_id].append(booking)
        return grouped

    def count_for_service(self, service_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.service_id == service_id)
        return self.db.execute(stmt).scalar_one()
