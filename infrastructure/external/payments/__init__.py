"""
Factory for payment service clients.
"""
from __future__ import annotations

from typing import Optional

from application.ports.payment_gateway import CredentialProvider, PaymentDirectory, PurchaseGateway


def get_payment_directory() -> PaymentDirectory:
    from .directory_client import PesepayDirectoryClient
    return PesepayDirectoryClient()


def get_purchase_gateway(credentials: Optional[CredentialProvider] = None) -> PurchaseGateway:
    from .purchase_client import PlaquePaymentsClient
    return PlaquePaymentsClient(credentials)
