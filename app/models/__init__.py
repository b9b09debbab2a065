"""SQLAlchemy models for the billing service.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from app.models.plan import SubscriptionPlan
from app.models.subscription import Subscription

__all__ = [
    "Subscription",
    "SubscriptionPlan",
]
