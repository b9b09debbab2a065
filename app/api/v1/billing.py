"""Billing API endpoints — plans, member subscription, checkout preferences, credential check."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    Identity,
    get_current_identity,
    get_db,
    get_mercadopago_client,
    get_optional_mercadopago_client,
    get_settings,
)
from app.billing.checkout import issue_preference
from app.billing.errors import GatewayError
from app.billing.mercadopago_client import MercadoPagoClient
from app.config import Settings
from app.schemas.billing import (
    ConfigTestResponse,
    CurrentSubscriptionResponse,
    ErrorResponse,
    PlanResponse,
    PlansListResponse,
    PreferenceCreateRequest,
    PreferenceResponse,
    SubscriptionResponse,
)
from app.services.subscription_service import get_subscription_by_user, list_active_plans

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


@router.get("/plans", response_model=PlansListResponse)
async def list_plans(db: AsyncSession = Depends(get_db)) -> PlansListResponse:
    """List active plans (public — no auth required)."""
    plans = await list_active_plans(db)
    return PlansListResponse(plans=[PlanResponse.model_validate(p) for p in plans])


@router.get(
    "/subscription",
    response_model=CurrentSubscriptionResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_subscription(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> CurrentSubscriptionResponse:
    """Current subscription of the authenticated member, if any."""
    subscription = await get_subscription_by_user(db, identity.user_id)
    if subscription is None:
        return CurrentSubscriptionResponse()
    return CurrentSubscriptionResponse(
        subscription=SubscriptionResponse.model_validate(subscription)
    )


@router.post(
    "/preference",
    response_model=PreferenceResponse,
    responses={400: {"model": ErrorResponse}},
)
async def create_preference(
    body: PreferenceCreateRequest,
    identity: Identity = Depends(get_current_identity),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    settings: Settings = Depends(get_settings),
) -> PreferenceResponse:
    """Create a Mercado Pago checkout preference for the authenticated member."""
    created = await issue_preference(
        client,
        identity,
        plan_id=body.plan_id,
        plan_name=body.plan_name,
        price=body.price,
        billing_period=body.billing_period,
        settings=settings,
    )
    return PreferenceResponse(preference_id=created.id, init_point=created.init_point)


@router.post(
    "/config/test",
    response_model=ConfigTestResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ConfigTestResponse}},
)
async def test_config(
    client: MercadoPagoClient | None = Depends(get_optional_mercadopago_client),
) -> ConfigTestResponse | JSONResponse:
    """Check the configured gateway credential without changing anything."""
    if client is None:
        return _config_failure("MERCADO_PAGO_ACCESS_TOKEN not configured in environment variables")

    try:
        account = await client.get_account()
    except GatewayError as e:
        logger.warning("Mercado Pago credential check failed: %s", e.message)
        return _config_failure(e.message)

    logger.info("Mercado Pago credential valid for account %s", account.id)
    return ConfigTestResponse(configured=True, user_id=account.id, email=account.email)


def _config_failure(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ConfigTestResponse(configured=False, error=message).model_dump(exclude_none=True),
    )
