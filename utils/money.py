"""Decimal currency helpers. Money never touches float."""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Quantize an amount to whole cents, rounding half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
