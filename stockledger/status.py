# stockledger/status.py
from typing import Iterable, List, Union

from .errors import ValidationError
from .models import Product, StockFilter, StockStatus


def classify(product: Product) -> StockStatus:
    if product.quantity == 0:
        return StockStatus.OUT
    if product.quantity <= product.min_quantity:
        return StockStatus.LOW
    return StockStatus.NORMAL


def parse_selector(selector: Union[str, StockFilter, None]) -> StockFilter:
    if selector is None:
        return StockFilter.ALL
    if isinstance(selector, StockFilter):
        return selector
    try:
        return StockFilter(str(selector).strip().upper())
    except ValueError:
        raise ValidationError(
            f"unknown stock filter {selector!r}; expected one of all, low, out", field="status"
        ) from None


def filter_products(snapshot: Iterable[Product], selector: Union[str, StockFilter, None] = StockFilter.ALL) -> List[Product]:
    """ALL keeps everything, LOW keeps LOW and OUT, OUT keeps only OUT."""
    wanted = parse_selector(selector)
    if wanted is StockFilter.ALL:
        return list(snapshot)
    if wanted is StockFilter.LOW:
        return [p for p in snapshot if classify(p) in (StockStatus.LOW, StockStatus.OUT)]
    return [p for p in snapshot if classify(p) is StockStatus.OUT]
