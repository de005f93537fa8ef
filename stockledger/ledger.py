# stockledger/ledger.py
import logging
from typing import List, Optional

from .catalog import utcnow
from .core import parse_movement
from .database import InMemoryStore, UnitOfWork
from .models import Transaction

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"


class TransactionLedger:
    """Append-only history of stock movements. There is no update or delete."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def append(
        self,
        product_id: str,
        type_,
        quantity,
        notes: Optional[str] = None,
        uow: Optional[UnitOfWork] = None,
    ) -> Transaction:
        """Record one movement.

        With ``uow`` the entry is only staged and becomes visible when that unit
        of work commits; otherwise it is inserted straight away.
        """
        movement = parse_movement(type_, quantity, notes)
        record = {
            "product_id": product_id,
            "type": movement.type.value,
            "quantity": movement.quantity,
            "notes": movement.notes,
            "created_at": utcnow(),
        }
        if uow is not None:
            [rec] = uow.insert(TRANSACTIONS, [record])
        else:
            [rec] = await self.store.insert(TRANSACTIONS, [record])
            logger.info("ledger %s %s %d for %s", rec["id"], rec["type"], rec["quantity"], product_id)
        return Transaction.model_validate(rec)

    async def list_for(self, product_id: str) -> List[Transaction]:
        rows = await self.store.select(TRANSACTIONS)
        return [Transaction.model_validate(r) for r in rows if r["product_id"] == product_id]

    async def signed_total(self, product_id: str) -> int:
        return sum(t.signed_quantity for t in await self.list_for(product_id))
