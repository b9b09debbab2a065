"""Subscription model — Mercado Pago billing state per user."""

from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

SUBSCRIPTION_STATUSES = ("pending", "active", "cancelled", "expired")
BILLING_PERIODS = ("monthly", "yearly")


class Subscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Tracks a member's paid access window and the payment that granted it."""

    __tablename__ = "subscriptions"

    # Identity provider subject, one subscription per user (upsert key)
    user_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("subscription_plans.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Plan & status
    status: Mapped[str] = mapped_column(String(50), nullable=False, server_default="pending")
    billing_period: Mapped[str] = mapped_column(String(20), nullable=False, server_default="monthly")

    # Gateway payment that granted the current period
    mercado_pago_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Billing period (naive UTC)
    current_period_start: Mapped[datetime | None] = mapped_column(nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    plan: Mapped["SubscriptionPlan"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, user_id={self.user_id}, plan_id={self.plan_id}, status={self.status})>"
