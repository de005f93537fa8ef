# stockledger/metrics.py
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable

from .models import InventoryMetrics, Product

CENTS = Decimal("0.01")


def compute_metrics(snapshot: Iterable[Product]) -> InventoryMetrics:
    """Counts and stock value over a catalog snapshot. Pure, no store access."""
    total = low = out = 0
    value = Decimal("0")
    with localcontext() as ctx:
        # sums and products of finite decimals stay exact
        ctx.prec = MAX_PREC
        ctx.Emax = MAX_EMAX
        ctx.Emin = MIN_EMIN
        for p in snapshot:
            total += 1
            if p.quantity <= p.min_quantity:
                low += 1
            if p.quantity == 0:
                out += 1
            value += p.quantity * p.price
    return InventoryMetrics(total=total, low_stock=low, out_of_stock=out, total_value=value)


def format_currency(value: Decimal) -> str:
    # display only; stored values keep full precision
    value = Decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the two cents
        ctx.prec = max(28, value.adjusted() + 3)
        return f"{value.quantize(CENTS, rounding=ROUND_HALF_UP):.2f}"
