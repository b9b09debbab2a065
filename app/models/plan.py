"""Subscription plan model — the catalogue members pick from."""

import uuid
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Numeric, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin


def _new_plan_id() -> str:
    return str(uuid.uuid4())


class SubscriptionPlan(TimestampMixin, Base):
    """A purchasable plan with monthly and yearly prices."""

    __tablename__ = "subscription_plans"

    # String key: plan ids travel inside the gateway's external reference
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_plan_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    price_monthly: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_yearly: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    features: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    def price_for(self, billing_period: str) -> Decimal:
        """Price charged for one billing period of this plan."""
        return self.price_yearly if billing_period == "yearly" else self.price_monthly

    def __repr__(self) -> str:
        return f"<SubscriptionPlan(id={self.id!r}, name={self.name!r}, active={self.is_active})>"
