"""Pydantic v2 request/response schemas for billing and webhook endpoints."""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BillingPeriod = Literal["monthly", "yearly"]

# --- Request schemas ---


class PreferenceCreateRequest(BaseModel):
    """Request to start a checkout for one plan."""

    plan_id: str = Field(min_length=1)
    plan_name: str  # display only
    price: Decimal
    billing_period: BillingPeriod = "monthly"


class NotificationData(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None


class WebhookNotification(BaseModel):
    """Gateway notification.

    Classic notifications carry ``{id, topic}``. Newer webhooks carry
    ``{type, data: {id}}``, where the top-level ``id`` is the event id, not
    the payment id.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    topic: str | None = None
    type: str | None = None
    action: str | None = None
    data: NotificationData | None = None

    def resolve(self) -> tuple[str | None, str | None]:
        """Return ``(topic, resource_id)`` for whichever shape was sent."""
        if self.topic:
            return self.topic, self.id
        if self.type:
            return self.type, self.data.id if self.data else None
        return None, self.id


# --- Response schemas ---


class PreferenceResponse(BaseModel):
    """Checkout preference the client must open to pay."""

    preference_id: str
    init_point: str


class WebhookAck(BaseModel):
    success: bool = True


class ConfigTestResponse(BaseModel):
    """Result of checking the configured gateway credential."""

    configured: bool
    user_id: str | None = None
    email: str | None = None
    error: str | None = None


class ErrorResponse(BaseModel):
    error: str


class PlanResponse(BaseModel):
    """Plan details for display and price computation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    price_monthly: Decimal
    price_yearly: Decimal
    features: list[str]
    is_active: bool

    @field_validator("features", mode="before")
    @classmethod
    def _decode_features(cls, value: Any) -> Any:
        # Older rows store the list as a JSON-encoded string
        if isinstance(value, str):
            return json.loads(value or "[]")
        return value or []


class PlansListResponse(BaseModel):
    """All active plans, cheapest first."""

    plans: list[PlanResponse]


class SubscriptionResponse(BaseModel):
    """The member's subscription as last reconciled from a payment."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    plan: PlanResponse | None = None
    status: str
    billing_period: BillingPeriod
    current_period_start: datetime | None
    current_period_end: datetime | None


class CurrentSubscriptionResponse(BaseModel):
    subscription: SubscriptionResponse | None = None


def error_body(message: str) -> dict[str, Any]:
    return ErrorResponse(error=message).model_dump()
