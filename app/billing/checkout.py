"""Checkout preference issuing — turn a plan choice into a gateway redirect."""

import logging
from decimal import Decimal

from app.auth.dependencies import Identity
from app.billing.errors import ValidationError
from app.billing.mercadopago_client import MercadoPagoClient
from app.billing.reference import build_external_reference
from app.config import Settings
from app.schemas.mercadopago import (
    BackUrls,
    PreferenceCreated,
    PreferenceItem,
    PreferencePayer,
    PreferenceRequest,
)

logger = logging.getLogger(__name__)


def build_preference(
    identity: Identity,
    plan_id: str,
    plan_name: str,
    price: Decimal,
    billing_period: str,
    settings: Settings,
) -> PreferenceRequest:
    """Build the preference body for one plan purchase by ``identity``."""
    if price <= 0:
        raise ValidationError("Price must be a positive amount")

    return PreferenceRequest(
        items=[
            PreferenceItem(
                title=f"Assinatura {plan_name}",
                quantity=1,
                currency_id=settings.billing_currency,
                unit_price=price,
            )
        ],
        payer=PreferencePayer(email=identity.email) if identity.email else None,
        back_urls=BackUrls(
            success=settings.back_url("success"),
            failure=settings.back_url("failure"),
            pending=settings.back_url("pending"),
        ),
        auto_return="approved",
        external_reference=build_external_reference(identity.user_id, plan_id),
        notification_url=settings.webhook_url,
        metadata={"billing_period": billing_period},
    )


async def issue_preference(
    client: MercadoPagoClient,
    identity: Identity,
    plan_id: str,
    plan_name: str,
    price: Decimal,
    billing_period: str,
    settings: Settings,
) -> PreferenceCreated:
    """Register a checkout intent with the gateway for the caller."""
    preference = build_preference(
        identity,
        plan_id=plan_id,
        plan_name=plan_name,
        price=price,
        billing_period=billing_period,
        settings=settings,
    )
    logger.info(
        "Issuing %s checkout for user %s, plan %s (%s %s)",
        billing_period,
        identity.user_id,
        plan_id,
        price,
        settings.billing_currency,
    )
    return await client.create_preference(preference)
