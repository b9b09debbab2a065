"""Subscription service — plan lookups and the reconciliation upsert."""

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from app.billing.errors import PersistenceError
from app.models import Subscription, SubscriptionPlan

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def list_active_plans(db: AsyncSession) -> list[SubscriptionPlan]:
    """Active plans, cheapest first."""
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.price_monthly.asc())
    )
    return list(result.scalars().all())


async def get_plan(db: AsyncSession, plan_id: str) -> SubscriptionPlan | None:
    """Look up a plan by id (active or not)."""
    result = await db.execute(
        select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id)
    )
    return result.scalar_one_or_none()


async def get_subscription_by_user(
    db: AsyncSession, user_id: str
) -> Subscription | None:
    """Look up the subscription row for a user (always re-read from the database)."""
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def activate_subscription(
    db: AsyncSession,
    user_id: str,
    plan_id: str,
    payment_id: str,
    billing_period: str,
    current_period_start: datetime,
    current_period_end: datetime,
) -> bool:
    """Create or update the user's subscription in one conditional write.

    The row is keyed by ``user_id``. An existing row is only overwritten by a
    different payment whose period does not start before the stored one, so
    replayed or late notifications leave it untouched. The write is committed
    here so that a failed commit is reported like any other storage failure.

    Returns:
        ``True`` if a row was inserted or updated, ``False`` if the stored
        subscription already reflects this (or a newer) payment.

    Raises:
        PersistenceError: If the write fails.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"Subscription upsert is not supported on {dialect}")

    values = {
        "user_id": user_id,
        "plan_id": plan_id,
        "status": "active",
        "billing_period": billing_period,
        "mercado_pago_subscription_id": payment_id,
        "current_period_start": current_period_start,
        "current_period_end": current_period_end,
    }
    stmt = insert(Subscription).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Subscription.user_id],
        set_={
            "plan_id": stmt.excluded.plan_id,
            "status": stmt.excluded.status,
            "billing_period": stmt.excluded.billing_period,
            "mercado_pago_subscription_id": stmt.excluded.mercado_pago_subscription_id,
            "current_period_start": stmt.excluded.current_period_start,
            "current_period_end": stmt.excluded.current_period_end,
            "updated_at": func.now(),
        },
        where=(
            Subscription.mercado_pago_subscription_id.is_distinct_from(
                stmt.excluded.mercado_pago_subscription_id
            )
            & or_(
                Subscription.current_period_start.is_(None),
                stmt.excluded.current_period_start >= Subscription.current_period_start,
            )
        ),
    ).returning(Subscription.id)

    try:
        result = await db.execute(stmt)
        written = result.scalar_one_or_none() is not None
        await db.commit()
    except SQLAlchemyError as e:
        logger.error("Error upserting subscription for user %s: %s", user_id, e)
        raise PersistenceError(f"Failed to save subscription: {e}") from e

    if written:
        logger.info(
            "Subscription activated for user %s with plan %s (payment %s, %s)",
            user_id,
            plan_id,
            payment_id,
            billing_period,
        )
    else:
        logger.info(
            "Subscription for user %s already reconciled with payment %s",
            user_id,
            payment_id,
        )
    return written
