"""Mercado Pago notification handlers — reconcile payments into subscriptions."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.errors import ValidationError
from app.billing.mercadopago_client import MercadoPagoClient
from app.billing.reference import parse_external_reference
from app.config import Settings
from app.models.plan import SubscriptionPlan
from app.schemas.mercadopago import Payment
from app.services.subscription_service import activate_subscription, get_plan

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert a gateway timestamp to naive UTC (the column convention)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def period_length(billing_period: str, settings: Settings) -> timedelta:
    """Length of one paid period for the given billing cadence."""
    if billing_period == "yearly":
        return timedelta(days=settings.subscription_period_days_yearly)
    return timedelta(days=settings.subscription_period_days_monthly)


def granted_period(payment: Payment, plan: SubscriptionPlan) -> str:
    """Billing period the payment actually pays for.

    The requested period comes from preference metadata and the price from
    the member's request, so a yearly term is only granted when the amount
    charged covers the plan's yearly price. Anything less buys one month.
    """
    requested = payment.billing_period
    if requested == "monthly":
        return requested

    amount = payment.transaction_amount
    if amount is None or amount < plan.price_for(requested):
        logger.warning(
            "Payment %s requested %s on plan %s but charged %s (price %s), granting monthly",
            payment.id,
            requested,
            plan.id,
            amount,
            plan.price_for(requested),
        )
        return "monthly"
    return requested


def period_window(
    payment: Payment,
    settings: Settings,
    billing_period: str | None = None,
) -> tuple[datetime, datetime]:
    """Billing window granted by an approved payment.

    Anchored on the gateway's approval time so that reprocessing the same
    payment yields the same window.
    """
    # Derived from the fetched payment record, not the time of delivery
    start = _to_naive_utc(payment.date_approved) or _utcnow()
    return start, start + period_length(billing_period or payment.billing_period, settings)


async def handle_payment(
    db: AsyncSession,
    client: MercadoPagoClient,
    payment_id: str,
    settings: Settings,
) -> None:
    """Handle a ``payment`` notification — activate on approval."""
    payment = await client.get_payment(payment_id)

    if not payment.is_approved:
        logger.info(
            "Payment %s is %s (%s), subscription unchanged",
            payment.id,
            payment.status,
            payment.status_detail,
        )
        return

    user_id, plan_id = parse_external_reference(payment.external_reference)

    plan = await get_plan(db, plan_id)
    if plan is None:
        raise ValidationError(f"Unknown plan {plan_id!r} in payment {payment.id}")

    billing_period = granted_period(payment, plan)
    period_start, period_end = period_window(payment, settings, billing_period)
    await activate_subscription(
        db,
        user_id=user_id,
        plan_id=plan.id,
        payment_id=payment.id,
        billing_period=billing_period,
        current_period_start=period_start,
        current_period_end=period_end,
    )


# Map notification topics to handler functions
TOPIC_HANDLERS = {
    "payment": handle_payment,
}


async def process_notification(
    db: AsyncSession,
    client: MercadoPagoClient,
    topic: str | None,
    resource_id: str | None,
    settings: Settings,
) -> bool:
    """Dispatch one notification. Returns ``False`` for topics we ignore."""
    handler = TOPIC_HANDLERS.get(topic or "")
    if handler is None:
        logger.debug("Unhandled notification topic: %s", topic)
        return False

    if not resource_id:
        raise ValidationError(f"Notification for topic {topic!r} has no id")

    logger.info("Processing notification: %s (id=%s)", topic, resource_id)
    await handler(db, client, resource_id, settings)
    return True
