# src/domain/state_machine.py

from enum import Enum
from typing import Dict, FrozenSet


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# Bookings only move when their payment completes, and only out of PENDING.
# COMPLETED and CANCELLED are set outside this service.
_BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED}),
}


def can_transition_booking(current: BookingStatus, target: BookingStatus) -> bool:
    return target in _BOOKING_TRANSITIONS.get(current, frozenset())
