# stockledger/service.py
import logging
from typing import List, Optional, Union

from .catalog import ProductCatalog
from .config import settings
from .database import InMemoryStore, KeyedLocks
from .engine import ConsistencyEngine
from .ledger import TransactionLedger
from .metrics import compute_metrics
from .models import InventoryMetrics, Product, StockFilter
from .status import filter_products

logger = logging.getLogger(__name__)


class InventoryService:
    """Owns one store and wires the catalog, ledger and engine around it.

    Callers hold a reference to a service instance; there is no module level
    state, so two services never share products, ledgers or locks.
    """

    def __init__(
        self,
        store: Optional[InMemoryStore] = None,
        unique_sku: Optional[bool] = None,
    ):
        self.store = store if store is not None else InMemoryStore(latency=settings.store_latency)
        self.locks = KeyedLocks()
        self.catalog = ProductCatalog(
            self.store,
            self.locks,
            unique_sku=settings.unique_sku if unique_sku is None else unique_sku,
        )
        self.ledger = TransactionLedger(self.store)
        self.engine = ConsistencyEngine(self.store, self.catalog, self.ledger, self.locks)

    async def snapshot(self) -> List[Product]:
        return await self.catalog.list()

    async def products(self, selector: Union[str, StockFilter, None] = StockFilter.ALL) -> List[Product]:
        return filter_products(await self.snapshot(), selector)

    async def metrics(self) -> InventoryMetrics:
        return compute_metrics(await self.snapshot())

    def reset(self):
        self.store.reset()
        self.locks.clear()
        logger.info("inventory reset")
