"""
Payment specific codes and gateway status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Gateway/Network errors (6xxxx)
    GATEWAY_ERROR = 60000
    GATEWAY_UNREACHABLE = 60001
    DIRECTORY_UNAVAILABLE = 60002


# Gateway wire status (upper-cased) -> internal PurchaseStatus value.
# Anything missing from this table is treated as PENDING.
GATEWAY_STATUS_TO_INTERNAL = {
    "PENDING": "PENDING",
    "PAID": "PAID",
    "SUCCESS": "PAID",
    "COMPLETED": "COMPLETED",
    "FAILED": "FAILED",
    "CANCELLED": "CANCELLED",
    "CANCELED": "CANCELLED",
}
