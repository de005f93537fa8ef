# stockledger/database.py
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Any, List, Optional, Tuple

from .errors import PersistenceError

# In-memory reference store for the ``products`` and ``transactions``
# collections, and the keyed locks that serialize stock movements.

logger = logging.getLogger(__name__)

COLLECTIONS = ("products", "transactions")

Record = Dict[str, Any]


class KeyedLocks:
    """One asyncio.Lock per key, alive only while someone holds or awaits it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            left = self._users.get(key, 1) - 1
            if left > 0:
                self._users[key] = left
            else:
                self._users.pop(key, None)
                if self._locks.get(key) is lock:
                    del self._locks[key]

    def for_product(self, product_id: str):
        return self.hold(f"product:{product_id}")

    def __len__(self) -> int:
        return len(self._locks)

    def clear(self):
        self._locks.clear()
        self._users.clear()


class UnitOfWork:
    """Inserts and conditional updates staged against a store.

    Nothing is visible until the store commits, and the commit applies every
    staged write or none of them.
    """

    def __init__(self, store: "InMemoryStore"):
        self._store = store
        self.ops: List[Tuple[str, str, Any]] = []

    def insert(self, collection: str, records: List[Record]) -> List[Record]:
        staged = [self._store._with_id(r) for r in records]
        self.ops.append(("insert", collection, staged))
        return [dict(r) for r in staged]

    def update(self, collection: str, patch: Record, match: str, expect: Optional[Record] = None):
        """Stage ``patch`` on record ``match``.

        ``expect`` maps field -> value that must still hold at commit time,
        otherwise the whole commit fails.
        """
        self.ops.append(("update", collection, (dict(patch), match, dict(expect or {}))))

    def delete(self, collection: str, match: str):
        self.ops.append(("delete", collection, match))


class InMemoryStore:
    """Dictionary backed store honouring the select/insert/update/delete contract.

    Every call awaits ``latency`` seconds (0 still yields to the event loop), so
    concurrent callers interleave the way they would against a real database.
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self._tables: Dict[str, Dict[str, Record]] = {name: {} for name in COLLECTIONS}

    async def _io(self):
        await asyncio.sleep(self.latency)

    def _table(self, collection: str) -> Dict[str, Record]:
        try:
            return self._tables[collection]
        except KeyError:
            raise PersistenceError(f"unknown collection: {collection}") from None

    @staticmethod
    def _with_id(record: Record) -> Record:
        rec = dict(record)
        if not rec.get("id"):
            rec["id"] = uuid.uuid4().hex
        return rec

    async def select(self, collection: str, match: Optional[str] = None) -> List[Record]:
        await self._io()
        table = self._table(collection)
        if match is not None:
            rec = table.get(match)
            return [dict(rec)] if rec is not None else []
        return [dict(r) for r in table.values()]

    async def insert(self, collection: str, records: List[Record]) -> List[Record]:
        uow = UnitOfWork(self)
        inserted = uow.insert(collection, records)
        await self.commit(uow)
        return inserted

    async def update(self, collection: str, patch: Record, match: str, expect: Optional[Record] = None) -> int:
        if match not in self._table(collection):
            await self._io()
            return 0
        uow = UnitOfWork(self)
        uow.update(collection, patch, match, expect)
        await self.commit(uow)
        return 1

    async def delete(self, collection: str, match: str) -> int:
        if match not in self._table(collection):
            await self._io()
            return 0
        uow = UnitOfWork(self)
        uow.delete(collection, match)
        await self.commit(uow)
        return 1

    @asynccontextmanager
    async def atomic(self):
        """Yield a UnitOfWork; commit it if the block exits cleanly."""
        uow = UnitOfWork(self)
        yield uow
        await self.commit(uow)

    async def commit(self, uow: UnitOfWork):
        await self._io()
        # Only the records the ops touch are staged; None marks a delete.
        # Tables change only after every op validated.
        staged: Dict[str, Dict[str, Optional[Record]]] = {}
        try:
            for op, collection, payload in uow.ops:
                table = self._table(collection)
                self._apply(table, staged.setdefault(collection, {}), op, collection, payload)
        except PersistenceError:
            logger.error("store commit rolled back (%d staged ops)", len(uow.ops))
            raise
        except Exception as e:
            logger.exception("store commit failed (%d staged ops)", len(uow.ops))
            raise PersistenceError(f"store write failed: {e}") from e

        for collection, changes in staged.items():
            table = self._tables[collection]
            for key, rec in changes.items():
                if rec is None:
                    table.pop(key, None)
                else:
                    table[key] = rec
        logger.debug("committed %d ops to %s", len(uow.ops), ", ".join(sorted(staged)))

    def _apply(
        self,
        table: Dict[str, Record],
        changes: Dict[str, Optional[Record]],
        op: str,
        collection: str,
        payload: Any,
    ):
        def current(key: str) -> Optional[Record]:
            return changes[key] if key in changes else table.get(key)

        if op == "insert":
            for rec in payload:
                if current(rec["id"]) is not None:
                    raise PersistenceError(f"duplicate id in {collection}: {rec['id']}")
                changes[rec["id"]] = dict(rec)
        elif op == "update":
            patch, match, expect = payload
            existing = current(match)
            if existing is None:
                raise PersistenceError(f"no {collection} record {match}")
            for key, value in expect.items():
                if existing.get(key) != value:
                    raise PersistenceError(
                        f"conditional update on {collection} {match} failed: {key} changed"
                    )
            changes[match] = {**existing, **patch}
        elif op == "delete":
            changes[payload] = None
        else:
            raise PersistenceError(f"unsupported operation: {op}")

    def reset(self):
        for table in self._tables.values():
            table.clear()
