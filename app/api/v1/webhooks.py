"""Mercado Pago webhook endpoint — receives and processes payment notifications."""

import logging

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_mercadopago_client, get_settings
from app.billing.mercadopago_client import MercadoPagoClient
from app.billing.webhooks import process_notification
from app.config import Settings
from app.schemas.billing import ErrorResponse, WebhookAck, WebhookNotification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post(
    "/mercadopago",
    response_model=WebhookAck,
    responses={400: {"model": ErrorResponse}},
)
async def mercadopago_webhook(
    request: Request,
    notification: WebhookNotification | None = Body(default=None),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> WebhookAck:
    """Receive a gateway notification and reconcile the payment it points to.

    Public and unauthenticated: the notification is only a hint, the payment is
    always re-fetched from the gateway. Any error answers 400 so the gateway
    retries the delivery.
    """
    # Classic IPN deliveries put ``id``/``topic`` in the query string
    if notification is None:
        params = request.query_params
        notification = WebhookNotification.model_validate(
            {
                "id": params.get("id"),
                "topic": params.get("topic"),
                "type": params.get("type"),
                "data": {"id": params.get("data.id")},
            }
        )

    topic, resource_id = notification.resolve()
    handled = await process_notification(db, client, topic, resource_id, settings)
    if not handled:
        logger.info("Notification topic %r acknowledged without processing", topic)
    return WebhookAck()
