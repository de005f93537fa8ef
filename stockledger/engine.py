# stockledger/engine.py
import logging
from typing import Optional

from .catalog import ProductCatalog, PRODUCTS
from .core import parse_movement
from .database import InMemoryStore, KeyedLocks
from .errors import InsufficientStockError, NotFoundError, PersistenceError
from .ledger import TransactionLedger
from .models import StockAudit, StockMovementResult, TransactionType

logger = logging.getLogger(__name__)


class ConsistencyEngine:
    """Sole writer of ``Product.quantity``.

    A movement is applied under the product's lock and committed as one unit
    of work: a conditional quantity update plus the ledger insert. Either both
    land or neither does, so ``quantity`` always equals the product's initial
    quantity plus the signed sum of its ledger.
    """

    def __init__(
        self,
        store: InMemoryStore,
        catalog: ProductCatalog,
        ledger: TransactionLedger,
        locks: KeyedLocks,
    ):
        self.store = store
        self.catalog = catalog
        self.ledger = ledger
        self.locks = locks

    async def apply_movement(
        self, product_id: str, type_, quantity, notes: Optional[str] = None
    ) -> StockMovementResult:
        movement = parse_movement(type_, quantity, notes)
        delta = movement.quantity if movement.type is TransactionType.IN else -movement.quantity

        async with self.locks.for_product(product_id):
            product = await self.catalog.get(product_id)
            new_quantity = product.quantity + delta
            if new_quantity < 0:
                logger.warning(
                    "rejected OUT %d for %s: only %d in stock",
                    movement.quantity, product_id, product.quantity,
                )
                raise InsufficientStockError(product_id, product.quantity, movement.quantity)

            try:
                async with self.store.atomic() as uow:
                    uow.update(
                        PRODUCTS,
                        {"quantity": new_quantity},
                        match=product_id,
                        expect={"quantity": product.quantity, "deleted_at": None},
                    )
                    entry = await self.ledger.append(
                        product_id, movement.type, movement.quantity, movement.notes, uow=uow
                    )
            except PersistenceError:
                logger.error("movement %s %d for %s not applied", movement.type.value, movement.quantity, product_id)
                raise

        logger.info(
            "%s %d for %s: %d -> %d (txn %s)",
            movement.type.value, movement.quantity, product_id, product.quantity, new_quantity, entry.id,
        )
        updated = product.model_copy(update={"quantity": new_quantity})
        return StockMovementResult(product=updated, transaction=entry)

    async def receive(self, product_id: str, quantity, notes: Optional[str] = None) -> StockMovementResult:
        return await self.apply_movement(product_id, TransactionType.IN, quantity, notes)

    async def withdraw(self, product_id: str, quantity, notes: Optional[str] = None) -> StockMovementResult:
        return await self.apply_movement(product_id, TransactionType.OUT, quantity, notes)

    async def audit(self, product_id: str) -> StockAudit:
        """Rebuild a product's quantity from its ledger and compare.

        Tombstoned products can still be audited; ids the store has never seen
        raise NotFoundError.
        """
        rows = await self.store.select(PRODUCTS, match=product_id)
        if not rows:
            raise NotFoundError(product_id)
        record = rows[0]
        entries = await self.ledger.list_for(product_id)
        total = await self.ledger.signed_total(product_id)
        return StockAudit(
            product_id=product_id,
            initial_quantity=record["initial_quantity"],
            ledger_total=total,
            expected_quantity=record["initial_quantity"] + total,
            quantity=record["quantity"],
            entries=len(entries),
        )
