"""Async Mercado Pago API wrapper."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.billing.errors import GatewayError
from app.schemas.mercadopago import GatewayAccount, Payment, PreferenceCreated, PreferenceRequest

logger = logging.getLogger(__name__)


def mask_token(token: str) -> str:
    """Show only a short prefix of a credential in logs."""
    return f"{token[:10]}..." if token else "<empty>"


class MercadoPagoClient:
    """Thin client for the three gateway calls the billing flow needs.

    The access token is passed in explicitly; callers resolve it from
    configuration (see ``app.billing.dependencies``).
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.access_token}"},
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Mercado Pago %s %s failed: %s", method, path, e)
            raise GatewayError(f"Mercado Pago request failed: {e}") from e
        logger.info("Mercado Pago %s %s -> %s", method, path, response.status_code)
        return response

    @staticmethod
    def _parse(model: type[BaseModel], response: httpx.Response, what: str):
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error("Malformed Mercado Pago %s response: %s", what, response.text)
            raise GatewayError(f"Malformed {what} response from Mercado Pago") from e

    async def create_preference(self, preference: PreferenceRequest) -> PreferenceCreated:
        """Register a checkout preference and return its id and init point."""
        payload = preference.model_dump(mode="json", exclude_none=True)
        logger.info(
            "Creating preference (reference=%s, token=%s)",
            preference.external_reference,
            mask_token(self.access_token),
        )
        response = await self._request("POST", "/checkout/preferences", json=payload)
        if not response.is_success:
            logger.error("Mercado Pago API error: %s", response.text)
            raise GatewayError(
                f"Failed to create payment preference: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        created = self._parse(PreferenceCreated, response, "preference")
        logger.info("Preference created successfully: %s", created.id)
        return created

    async def get_payment(self, payment_id: str) -> Payment:
        """Fetch the authoritative payment record."""
        response = await self._request("GET", f"/v1/payments/{payment_id}")
        if not response.is_success:
            logger.error("Failed to fetch payment %s: %s", payment_id, response.text)
            raise GatewayError(
                "Failed to get payment details",
                status_code=response.status_code,
                body=response.text,
            )
        return self._parse(Payment, response, "payment")

    async def get_account(self) -> GatewayAccount:
        """Identify the account that owns the access token (read-only)."""
        response = await self._request("GET", "/users/me")
        if not response.is_success:
            raise GatewayError(
                f"Invalid access token: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return self._parse(GatewayAccount, response, "account")
