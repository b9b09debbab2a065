"""Client-side checkout initiator.

Calls the preference endpoint on behalf of a signed-in member, opens the
gateway checkout in a new browser tab and reports the outcome as a notice the
UI can show as a toast.
"""

import asyncio
import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal

import httpx

logger = logging.getLogger(__name__)

BillingPeriod = Literal["monthly", "yearly"]


@dataclass(frozen=True)
class PlanOption:
    """A plan as listed by ``GET /api/v1/billing/plans``."""

    id: str
    name: str
    price_monthly: Decimal
    price_yearly: Decimal
    description: str | None = None
    features: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PlanOption":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            price_monthly=Decimal(str(data["price_monthly"])),
            price_yearly=Decimal(str(data["price_yearly"])),
            description=data.get("description"),
            features=tuple(data.get("features") or ()),
        )

    def price_for(self, billing_period: BillingPeriod) -> Decimal:
        return self.price_monthly if billing_period == "monthly" else self.price_yearly


@dataclass(frozen=True)
class Notice:
    """Toast shown to the member."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    init_point: str | None = None


REDIRECT_NOTICE = Notice(
    title="Redirecionando para pagamento",
    description="Uma nova aba foi aberta com o checkout do Mercado Pago.",
)
NOT_CONFIGURED_MESSAGE = "Mercado Pago não configurado. Entre em contato com o administrador."
NOT_AUTHENTICATED_MESSAGE = "Você precisa estar logado para fazer uma assinatura."
GENERIC_FAILURE_MESSAGE = "Erro ao iniciar processo de pagamento. Tente novamente."


def failure_notice(error: str | None) -> Notice:
    """Pick the member-facing message for a failed checkout."""
    error = error or ""
    if "access token not configured" in error:
        description = NOT_CONFIGURED_MESSAGE
    elif "Unauthorized" in error:
        description = NOT_AUTHENTICATED_MESSAGE
    else:
        description = GENERIC_FAILURE_MESSAGE
    return Notice(title="Erro no checkout", description=description, variant="destructive")


class CheckoutInitiator:
    """Start gateway checkouts, one at a time.

    ``start`` ignores calls made while a previous checkout request is still in
    flight, so a double click cannot create two checkout intents.
    """

    def __init__(
        self,
        api_url: str,
        access_token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        opener: Callable[[str], Any] = webbrowser.open_new_tab,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.access_token = access_token
        self._http_client = http_client
        self._opener = opener
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                f"{self.api_url}{path}", json=payload, headers=self._headers()
            )
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(f"{self.api_url}{path}", json=payload, headers=self._headers())

    async def fetch_plans(self) -> list[PlanOption]:
        """Fetch the active plan catalogue."""
        url = f"{self.api_url}/api/v1/billing/plans"
        if self._http_client is not None:
            response = await self._http_client.get(url)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(url)
        response.raise_for_status()
        return [PlanOption.from_api(p) for p in response.json()["plans"]]

    async def start(self, plan: PlanOption, billing_period: BillingPeriod) -> Notice | None:
        """Request a checkout for ``plan`` and open it.

        Returns the notice to display, or ``None`` if a checkout is already in
        progress.
        """
        if self._lock.locked():
            logger.info("Checkout already in progress, ignoring repeat request")
            return None

        async with self._lock:
            price = plan.price_for(billing_period)
            logger.info("Starting checkout for plan %s (%s, %s)", plan.name, billing_period, price)
            payload = {
                "plan_id": plan.id,
                "plan_name": plan.name,
                "price": float(price),
                "billing_period": billing_period,
            }

            try:
                response = await self._post("/api/v1/billing/preference", payload)
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Checkout error: %s", e)
                return failure_notice(None)

            if response.is_error:
                logger.error("Checkout error: %s", data)
                return failure_notice(data.get("error") if isinstance(data, dict) else None)

            init_point = data.get("init_point") if isinstance(data, dict) else None
            if not init_point:
                logger.error("Checkout URL not received: %s", data)
                return failure_notice(None)

            logger.info("Opening checkout: %s", init_point)
            self._opener(init_point)
            return Notice(
                title=REDIRECT_NOTICE.title,
                description=REDIRECT_NOTICE.description,
                init_point=init_point,
            )
