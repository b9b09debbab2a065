"""External reference — the correlation key between a checkout and its payment.

The gateway echoes the reference back on the payment record, so it is the only
link from a webhook to the member and plan that started the checkout. The
format ``{user_id}_{plan_id}`` is shared with intents already issued and must
not change without migrating them.
"""

from app.billing.errors import ValidationError

SEPARATOR = "_"


def build_external_reference(user_id: str, plan_id: str) -> str:
    """Encode ``(user_id, plan_id)`` as ``{user_id}_{plan_id}``.

    Parsing splits on the first separator, so the user id must not contain
    one. Plan ids may.
    """
    if not user_id or not plan_id:
        raise ValidationError("User and plan identifiers are required")
    if SEPARATOR in user_id:
        raise ValidationError(f"User identifier may not contain {SEPARATOR!r}")
    return f"{user_id}{SEPARATOR}{plan_id}"


def parse_external_reference(reference: str | None) -> tuple[str, str]:
    """Decode an external reference into ``(user_id, plan_id)``."""
    if not reference:
        raise ValidationError("Payment has no external reference")
    user_id, sep, plan_id = reference.partition(SEPARATOR)
    if not sep or not user_id or not plan_id:
        raise ValidationError(f"Malformed external reference: {reference!r}")
    return user_id, plan_id
