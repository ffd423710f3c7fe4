# src/infrastructure/repositories/payment_repository.py

from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy import select, func

from src.infrastructure.db.models import Payment
from src.domain.state_machine import PaymentStatus


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_id: str) -> Payment | None:
        stmt = select(Payment).where(Payment.id == payment_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_transaction_id(self, transaction_id: str) -> Payment | None:
        stmt = (
            select(Payment)
            .where(Payment.transaction_id == transaction_id)
            .order_by(Payment.created_at)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_pending(
        self,
        amount: float,
        method: str,
        user_id: str,
        recipient_id: str,
        booking_id: str,
        client_id: str,
        vendor_id: str,
        admin_split: float,
        vendor_split: float,
    ) -> Payment:
        payment = Payment(
            amount=amount,
            status=PaymentStatus.PENDING,
            method=method,
            user_id=user_id,
            recipient_id=recipient_id,
            booking_id=booking_id,
            client_id=client_id,
            vendor_id=vendor_id,
            admin_split=admin_split,
            vendor_split=vendor_split,
        )
        self.db.add(payment)
        return payment

    def update_status(
        self,
        payment: Payment,
        new_status: PaymentStatus,
    ) -> None:
        # Always touches updated_at, even when the status is unchanged.
        payment.status = new_status
        payment.updated_at = datetime.now(timezone.utc)

    def list_for_user(
        self,
        user_id: str,
        status: PaymentStatus | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Payment], int]:
        conditions = [Payment.user_id == user_id]
        if status is not None:
            conditions.append(Payment.status == status)

        stmt = (
            select(Payment)
            .where(*conditions)
            .order_by(Payment.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        payments = list(self.db.execute(stmt).scalars().all())

        count_stmt = select(func.count()).select_from(Payment).where(*conditions)
        total = self.db.execute(count_stmt).scalar_one()
        return payments, total
