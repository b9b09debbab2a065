"""Pydantic v2 models for Mercado Pago payloads.

Request models build the JSON sent to the gateway; result models validate the
shape of what comes back before any field is used.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# --- Outbound ---


class PreferenceItem(BaseModel):
    """Single line item of a checkout preference."""

    title: str
    quantity: int = 1
    currency_id: str
    unit_price: Decimal

    @field_serializer("unit_price")
    def _serialize_price(self, value: Decimal) -> float:
        return float(value)


class PreferencePayer(BaseModel):
    email: str


class BackUrls(BaseModel):
    success: str
    failure: str
    pending: str


class PreferenceRequest(BaseModel):
    """Body of ``POST /checkout/preferences``."""

    items: list[PreferenceItem]
    payer: PreferencePayer | None = None
    back_urls: BackUrls
    auto_return: str = "approved"
    external_reference: str
    notification_url: str
    metadata: dict[str, Any] = Field(default_factory=dict)


# --- Inbound ---


class _GatewayModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class PreferenceCreated(_GatewayModel):
    """Checkout preference registered by the gateway."""

    id: str = Field(min_length=1)
    init_point: str = Field(min_length=1)
    sandbox_init_point: str | None = None


class Payment(_GatewayModel):
    """Authoritative payment record fetched from ``/v1/payments/{id}``."""

    id: str = Field(min_length=1)
    status: str
    status_detail: str | None = None
    external_reference: str | None = None
    date_approved: datetime | None = None
    transaction_amount: Decimal | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == "approved"

    @property
    def billing_period(self) -> str:
        """Billing period carried over from the preference metadata."""
        period = (self.metadata or {}).get("billing_period")
        return "yearly" if period == "yearly" else "monthly"


class GatewayAccount(_GatewayModel):
    """Account owning the configured access token (``/users/me``)."""

    id: str
    email: str | None = None
    nickname: str | None = None
