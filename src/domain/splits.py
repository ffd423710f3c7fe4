# src/domain/splits.py

from dataclasses import dataclass

ADMIN_SHARE_PERCENT = 10
VENDOR_SHARE_PERCENT = 90


@dataclass(frozen=True)
class PaymentSplit:
    admin_split: float
    vendor_split: float


def compute_split(amount: float) -> PaymentSplit:
    """Platform keeps ADMIN_SHARE_PERCENT, the vendor receives the rest."""
    admin_split = round(amount * ADMIN_SHARE_PERCENT / 100, 2)
    vendor_split = round(amount - admin_split, 2)
    return PaymentSplit(admin_split=admin_split, vendor_split=vendor_split)


def split_instruction(admin_account_id: str, vendor_account_id: str) -> dict:
    return {
        "type": "percentage",
        "subaccounts": [
            {"id": admin_account_id, "share": ADMIN_SHARE_PERCENT},
            {"id": vendor_account_id, "share": VENDOR_SHARE_PERCENT},
        ],
    }
