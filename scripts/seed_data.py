"""Seed the database with the default subscription plans.

Prices follow the members area pricing page: yearly billing is 12 months
with a 20% discount.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from app.database import Base, async_session_factory, engine
from app.models.plan import SubscriptionPlan

YEARLY_DISCOUNT = Decimal("0.80")

PLANS = [
    {
        "name": "Gratuito",
        "description": "Conteúdo básico para conhecer a plataforma",
        "price_monthly": Decimal("0.00"),
        "features": ["Conteúdo básico", "Suporte por email"],
    },
    {
        "name": "Premium",
        "description": "Acesso completo a aulas, webinars e materiais",
        "price_monthly": Decimal("29.90"),
        "features": ["Todo o conteúdo", "Suporte prioritário", "Downloads"],
    },
    {
        "name": "VIP",
        "description": "Tudo do Premium com conteúdo exclusivo e suporte 24/7",
        "price_monthly": Decimal("59.90"),
        "features": ["Todo o conteúdo", "Suporte 24/7", "Conteúdo exclusivo"],
    },
]


def yearly_price(monthly: Decimal) -> Decimal:
    return (monthly * 12 * YEARLY_DISCOUNT).quantize(Decimal("0.01"))


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        for data in PLANS:
            result = await db.execute(
                select(SubscriptionPlan).where(SubscriptionPlan.name == data["name"])
            )
            if result.scalar_one_or_none() is not None:
                print(f"  Plan {data['name']} already exists, skipping")
                continue

            plan = SubscriptionPlan(
                name=data["name"],
                description=data["description"],
                price_monthly=data["price_monthly"],
                price_yearly=yearly_price(data["price_monthly"]),
                features=data["features"],
                is_active=True,
            )
            db.add(plan)
            await db.flush()
            print(f"  Created plan {plan.name} ({plan.id}): R$ {plan.price_monthly}/mês, R$ {plan.price_yearly}/ano")

        await db.commit()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
