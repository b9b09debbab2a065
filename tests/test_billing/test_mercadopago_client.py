"""Tests for the Mercado Pago HTTP client against a mocked transport."""

from decimal import Decimal

import httpx
import pytest

from app.billing.errors import GatewayError
from app.billing.mercadopago_client import MercadoPagoClient, mask_token
from app.schemas.mercadopago import BackUrls, PreferenceItem, PreferenceRequest


def _preference() -> PreferenceRequest:
    return PreferenceRequest(
        items=[PreferenceItem(title="Assinatura Premium", currency_id="BRL", unit_price=Decimal("29.90"))],
        back_urls=BackUrls(success="https://s", failure="https://f", pending="https://p"),
        external_reference="u1_p1",
        notification_url="https://api.test/api/v1/webhooks/mercadopago",
    )


def _client(gateway) -> MercadoPagoClient:
    return MercadoPagoClient("TEST-token-123456", transport=httpx.MockTransport(gateway.handler))


class TestMaskToken:
    def test_masks_long_token(self):
        assert mask_token("APP_USR-1234567890-secret") == "APP_USR-12..."

    def test_empty(self):
        assert mask_token("") == "<empty>"


class TestCreatePreference:
    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_body(self, gateway):
        created = await _client(gateway).create_preference(_preference())

        request = gateway.requests[0]
        assert request.headers["Authorization"] == "Bearer TEST-token-123456"
        body = gateway.sent_json()
        assert body["items"][0]["unit_price"] == 29.9
        assert body["external_reference"] == "u1_p1"
        assert "payer" not in body
        assert created.id
        assert created.id in created.init_point

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_gateway_body(self, gateway):
        gateway.preference_status = 400
        gateway.preference_body = {"message": "invalid unit_price", "status": 400}

        with pytest.raises(GatewayError) as exc_info:
            await _client(gateway).create_preference(_preference())

        assert exc_info.value.status_code == 400
        assert "invalid unit_price" in exc_info.value.message
        assert exc_info.value.message.startswith("Failed to create payment preference")

    @pytest.mark.asyncio
    async def test_missing_init_point_is_malformed(self, gateway):
        gateway.preference_body = {"id": "pref-1"}

        with pytest.raises(GatewayError, match="Malformed preference"):
            await _client(gateway).create_preference(_preference())

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, gateway):
        gateway.preference_body = "<html>oops</html>"

        with pytest.raises(GatewayError):
            await _client(gateway).create_preference(_preference())

    @pytest.mark.asyncio
    async def test_transport_failure_raises_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = MercadoPagoClient("TEST-token", transport=httpx.MockTransport(handler))
        with pytest.raises(GatewayError, match="request failed"):
            await client.create_preference(_preference())


class TestGetPayment:
    @pytest.mark.asyncio
    async def test_numeric_id_coerced_to_string(self, gateway):
        gateway.add_payment(555, "approved", "u1_p1", metadata={"billing_period": "yearly"})

        payment = await _client(gateway).get_payment("555")

        assert payment.id == "555"
        assert payment.is_approved
        assert payment.billing_period == "yearly"
        assert gateway.requests[0].url.path == "/v1/payments/555"

    @pytest.mark.asyncio
    async def test_not_found_raises(self, gateway):
        with pytest.raises(GatewayError, match="Failed to get payment details"):
            await _client(gateway).get_payment("404")

    @pytest.mark.asyncio
    async def test_null_metadata_defaults_to_monthly(self, gateway):
        gateway.add_payment(556, "approved", "u1_p1", metadata=None)

        payment = await _client(gateway).get_payment("556")

        assert payment.billing_period == "monthly"


class TestGetAccount:
    @pytest.mark.asyncio
    async def test_returns_account(self, gateway):
        account = await _client(gateway).get_account()
        assert account.id == "987654321"
        assert account.email == "seller@test.com"

    @pytest.mark.asyncio
    async def test_rejected_token(self, gateway):
        gateway.account_status = 401
        with pytest.raises(GatewayError, match="Invalid access token"):
            await _client(gateway).get_account()
