"""Gateway dependencies — resolve the Mercado Pago credential per request."""

import logging

import httpx
from fastapi import Depends

from app.billing.errors import ConfigurationError
from app.billing.mercadopago_client import MercadoPagoClient
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def get_gateway_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound gateway calls (``None`` = real network)."""
    return None


def build_mercadopago_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> MercadoPagoClient:
    return MercadoPagoClient(
        settings.mercado_pago_access_token,
        base_url=settings.mercado_pago_api_url,
        timeout=settings.mercado_pago_timeout_seconds,
        transport=transport,
    )


async def get_optional_mercadopago_client(
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_gateway_transport),
) -> MercadoPagoClient | None:
    """Return a gateway client, or ``None`` when no access token is configured."""
    if not settings.mercado_pago_access_token:
        return None
    return build_mercadopago_client(settings, transport)


async def get_mercadopago_client(
    client: MercadoPagoClient | None = Depends(get_optional_mercadopago_client),
) -> MercadoPagoClient:
    """Return a gateway client or fail fast before any outbound call.

    Raises:
        ConfigurationError: If ``MERCADO_PAGO_ACCESS_TOKEN`` is not set.
    """
    if client is None:
        logger.error("MERCADO_PAGO_ACCESS_TOKEN not configured")
        raise ConfigurationError()
    return client
