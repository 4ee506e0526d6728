"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings so the engine can be configured
without the web application settings.
"""
from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentTimeouts(BaseModel):
    connect: float = 3.0
    read: float = 10.0
    write: float = 10.0
    total: float = 10.0


class PaymentRetry(BaseModel):
    # Applies to directory listings only; purchases and status queries never auto-retry
    max: int = 2
    base_backoff: float = 0.2


class DirectorySettings(BaseModel):
    base_url: str = "https://api.pesepay.com/api/payments-engine/v1"


class PurchasesSettings(BaseModel):
    base_url: str = "http://localhost:5000/api/payments"


class SupportSettings(BaseModel):
    phone: str = "+263714219938"
    base_url: str = "https://wa.me"


class ReconcileSettings(BaseModel):
    interval_seconds: float = 5.0
    max_attempts: int = 12


class AccountSettings(BaseModel):
    # In-process ledgers keyed by bearer credential
    max_accounts: int = 256
    idle_ttl_seconds: float = 1800.0


class PaymentSettings(BaseSettings):
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    purchases: PurchasesSettings = Field(default_factory=PurchasesSettings)
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    support: SupportSettings = Field(default_factory=SupportSettings)
    reconcile: ReconcileSettings = Field(default_factory=ReconcileSettings)
    accounts: AccountSettings = Field(default_factory=AccountSettings)

    shipping_surcharge: Decimal = Decimal("10.00")
    preferred_currency: str = "USD"
    default_plaque_type: str = "Gold"
    mock_album_prefix: str = "mock-album"
    debug_http: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENT__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
