# src/domain/gateway_status.py

from enum import Enum
from typing import Dict

from src.domain.state_machine import PaymentStatus


class GatewayStatus(str, Enum):
    """Status vocabulary reported by the payment gateway."""

    SUCCESS = "success"
    FAILED = "failed"
    FAIL = "fail"
    PENDING = "pending"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> "GatewayStatus":
        if not raw or not isinstance(raw, str):
            return cls.UNKNOWN
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Every GatewayStatus member must appear here; unknown statuses fail closed.
_PAYMENT_STATUS_BY_GATEWAY_STATUS: Dict[GatewayStatus, PaymentStatus] = {
    GatewayStatus.SUCCESS: PaymentStatus.COMPLETED,
    GatewayStatus.FAILED: PaymentStatus.FAILED,
    GatewayStatus.FAIL: PaymentStatus.FAILED,
    GatewayStatus.PENDING: PaymentStatus.PENDING,
    GatewayStatus.UNKNOWN: PaymentStatus.FAILED,
}

_missing = set(GatewayStatus) - set(_PAYMENT_STATUS_BY_GATEWAY_STATUS)
if _missing:
    raise RuntimeError(f"Unmapped gateway statuses: {sorted(s.value for s in _missing)}")


def map_gateway_status(raw: object) -> PaymentStatus:
    return _PAYMENT_STATUS_BY_GATEWAY_STATUS[GatewayStatus.parse(raw)]
