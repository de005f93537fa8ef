# stockledger/catalog.py
import logging
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from .core import parse_product, parse_patch, _make_product_dict
from .database import InMemoryStore, KeyedLocks
from .errors import NotFoundError, ValidationError
from .models import Product

logger = logging.getLogger(__name__)

PRODUCTS = "products"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductCatalog:
    """Product records and their plain field edits.

    ``quantity`` is set once on creation and is otherwise left to the
    ConsistencyEngine. Deleted products stay in the store as tombstones so their
    ledger keeps a valid back-reference.
    """

    def __init__(self, store: InMemoryStore, locks: KeyedLocks, unique_sku: bool = True):
        self.store = store
        self.locks = locks
        self.unique_sku = unique_sku

    async def _live_records(self) -> List[Dict[str, Any]]:
        return [r for r in await self.store.select(PRODUCTS) if r.get("deleted_at") is None]

    async def _record(self, product_id: str) -> Dict[str, Any]:
        rows = await self.store.select(PRODUCTS, match=product_id)
        if not rows or rows[0].get("deleted_at") is not None:
            raise NotFoundError(product_id)
        return rows[0]

    async def _check_sku(self, sku: str, exclude_id: Optional[str] = None):
        for r in await self._live_records():
            if r["sku"] == sku and r["id"] != exclude_id:
                raise ValidationError(f"sku already in use: {sku}", field="sku")

    async def create(self, fields: Dict[str, Any]) -> Product:
        payload = parse_product(fields)
        async with AsyncExitStack() as stack:
            if self.unique_sku:
                await stack.enter_async_context(self.locks.hold("sku"))
                await self._check_sku(payload.sku)
            [rec] = await self.store.insert(PRODUCTS, [_make_product_dict(payload, utcnow())])
        logger.info("created product %s (sku=%s, quantity=%d)", rec["id"], rec["sku"], rec["quantity"])
        return Product.model_validate(rec)

    async def get(self, product_id: str) -> Product:
        return Product.model_validate(await self._record(product_id))

    async def list(self) -> List[Product]:
        return [Product.model_validate(r) for r in await self._live_records()]

    async def update(self, product_id: str, fields: Dict[str, Any]) -> Product:
        patch = parse_patch(fields)
        async with AsyncExitStack() as stack:
            await stack.enter_async_context(self.locks.for_product(product_id))
            current = await self._record(product_id)
            if not patch:
                return Product.model_validate(current)
            if self.unique_sku and "sku" in patch and patch["sku"] != current["sku"]:
                await stack.enter_async_context(self.locks.hold("sku"))
                await self._check_sku(patch["sku"], exclude_id=product_id)
            await self.store.update(PRODUCTS, patch, match=product_id, expect={"deleted_at": None})
        logger.info("updated product %s: %s", product_id, ", ".join(sorted(patch)))
        return Product.model_validate({**current, **patch})

    async def delete(self, product_id: str) -> None:
        async with self.locks.for_product(product_id):
            await self._record(product_id)
            await self.store.update(
                PRODUCTS, {"deleted_at": utcnow()}, match=product_id, expect={"deleted_at": None}
            )
        logger.info("deleted product %s (ledger history kept)", product_id)
