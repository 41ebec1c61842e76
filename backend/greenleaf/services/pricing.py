"""Money math. All prices are Decimal dollars in, integer cents out."""
from decimal import Decimal, ROUND_HALF_UP


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise in
    return Decimal(str(value))


def subtotal_cents(grams, price_per_gram) -> int:
    """round(grams * price_per_gram * 100), halves rounded up."""
    cents = to_decimal(grams) * to_decimal(price_per_gram) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_money(cents: int) -> str:
    return f"${Decimal(cents) / 100:,.2f}"
