"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets a fresh in-memory SQLite database (aiosqlite).
- The test session runs inside a transaction that rolls back after the test.
- Outbound Mercado Pago calls go to ``FakeMercadoPago`` through
  ``httpx.MockTransport``; nothing reaches the network.
"""

import os

# Configure before any app module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-for-identity-tokens")
os.environ.setdefault("MERCADO_PAGO_ACCESS_TOKEN", "TEST-1234567890-abcdef")
os.environ.setdefault("APP_BASE_URL", "https://members.test")
os.environ.setdefault("PUBLIC_API_URL", "https://api.members.test")

import json
from collections.abc import AsyncGenerator
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.billing.dependencies import get_gateway_transport
from app.config import Settings, get_settings, settings
from app.database import Base, get_db
from app.main import app
from app.models.plan import SubscriptionPlan

# ---------------------------------------------------------------------------
# Fake gateway
# ---------------------------------------------------------------------------


class FakeMercadoPago:
    """In-memory stand-in for the Mercado Pago REST API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.payments: dict[str, dict] = {}
        self.preference_status = 201
        self.preference_body: dict | str | None = None
        self.payment_status = 200
        self.account_status = 200
        self.account_body: dict | str = {"id": 987654321, "email": "seller@test.com", "nickname": "SELLER"}
        self._preference_seq = 0

    def add_payment(self, payment_id: int | str, status: str, external_reference: str | None, **extra) -> dict:
        payment = {"id": payment_id, "status": status, "external_reference": external_reference, **extra}
        self.payments[str(payment_id)] = payment
        return payment

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/checkout/preferences":
            if self.preference_body is not None:
                return _response(self.preference_status, self.preference_body)
            self._preference_seq += 1
            pref_id = f"123456-pref-{self._preference_seq}"
            return _response(
                self.preference_status,
                {
                    "id": pref_id,
                    "init_point": f"https://www.mercadopago.com.br/checkout/v1/redirect?pref_id={pref_id}",
                    "sandbox_init_point": f"https://sandbox.mercadopago.com.br/checkout/v1/redirect?pref_id={pref_id}",
                },
            )

        if request.method == "GET" and path.startswith("/v1/payments/"):
            payment_id = path.rsplit("/", 1)[-1]
            payment = self.payments.get(payment_id)
            if payment is None or self.payment_status != 200:
                return _response(self.payment_status if payment else 404, {"message": "Payment not found"})
            return _response(200, payment)

        if request.method == "GET" and path == "/users/me":
            if self.account_status != 200:
                return _response(self.account_status, {"message": "invalid access token", "status": 401})
            return _response(200, self.account_body)

        return _response(404, {"message": "not found"})

    def sent_json(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def _response(status_code: int, body: dict | str) -> httpx.Response:
    if isinstance(body, str):
        return httpx.Response(status_code, text=body)
    return httpx.Response(status_code, json=body)


@pytest.fixture
def gateway() -> FakeMercadoPago:
    return FakeMercadoPago()


@pytest.fixture
def gateway_transport(gateway: FakeMercadoPago) -> httpx.MockTransport:
    return httpx.MockTransport(gateway.handler)


@pytest.fixture
def test_settings() -> Settings:
    """Copy of the configured settings that tests may tweak."""
    return settings.model_copy()


# ---------------------------------------------------------------------------
# Per-test database with transactional rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    gateway_transport: httpx.MockTransport,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB, settings and fake gateway."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_transport() -> httpx.AsyncBaseTransport:
        return gateway_transport

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway_transport] = override_transport
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def without_credential(test_settings: Settings) -> Settings:
    """Run the request with no Mercado Pago access token configured."""
    test_settings.mercado_pago_access_token = ""
    return test_settings


# ---------------------------------------------------------------------------
# Convenience fixtures: identity and plans
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization headers for member ``u1``."""
    token = create_access_token({"sub": "u1", "email": "u1@test.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def premium_plan(db_session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        id="p1",
        name="Premium",
        description="Acesso completo",
        price_monthly=Decimal("29.90"),
        price_yearly=Decimal("287.04"),
        features=["Todo o conteúdo", "Suporte prioritário", "Downloads"],
        is_active=True,
    )
    db_session.add(plan)
    await db_session.flush()
    return plan
