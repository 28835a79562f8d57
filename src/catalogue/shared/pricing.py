"""Conversion between major currency units and integer cents."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def to_cents(amount) -> int | None:
    """Return ``amount`` (major units) as whole cents, or None if not a number."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
