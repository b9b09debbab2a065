"""Shared API dependencies — single import point for all routers.

Re-exports database session, configuration, authentication and gateway
dependencies so that router modules can import everything they need from one
place::

    from app.api.deps import get_db, get_current_identity, get_mercadopago_client
"""

from app.auth.dependencies import Identity, get_current_identity
from app.billing.dependencies import (
    get_gateway_transport,
    get_mercadopago_client,
    get_optional_mercadopago_client,
)
from app.config import get_settings
from app.database import get_db

__all__ = [
    "Identity",
    "get_db",
    "get_settings",
    "get_current_identity",
    "get_gateway_transport",
    "get_mercadopago_client",
    "get_optional_mercadopago_client",
]
