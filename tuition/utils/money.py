"""Money arithmetic and currency formatting.

All amounts are Decimal quantized to cents with ROUND_HALF_UP, so sums
never pick up binary floating point drift.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from tuition.core.config import settings

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "NGN": "₦",
    "KES": "KSh ",
    "GHS": "GH₵",
    "ZAR": "R",
    "CAD": "CA$",
    "AUD": "A$",
    "PHP": "₱",
    "PKR": "Rs ",
}


def to_money(value) -> Decimal:
    """Coerce int/float/str/Decimal/None into a cent-quantized Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount")
    if isinstance(value, float):
        # str() keeps the shortest repr, avoiding 0.1 -> 0.1000000000000000055
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    """Exact sum of monetary values."""
    total = ZERO
    for value in values:
        total += to_money(value)
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount, currency: Optional[str] = None) -> str:
    """
    Render an amount for display, e.g. ``$1,234.50``.

    Missing currency falls back to DEFAULT_CURRENCY. Codes without a
    known symbol render as ``"CHF 1,234.50"``.
    """
    code = (currency or settings.DEFAULT_CURRENCY or "USD").strip().upper()
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    body = f"{abs(value):,.2f}"
    if code == "JPY":
        body = f"{abs(value):,.0f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {body}"
    return f"{sign}{symbol}{body}"
