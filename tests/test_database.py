# tests/test_database.py
import asyncio

import pytest

from stockledger.database import InMemoryStore, KeyedLocks
from stockledger.errors import PersistenceError


def run(coro):
    return asyncio.run(coro)


def test_crud_contract():
    store = InMemoryStore()

    async def scenario():
        [rec] = await store.insert("products", [{"sku": "A", "quantity": 1}])
        assert rec["id"]
        assert await store.update("products", {"quantity": 2}, match=rec["id"]) == 1
        assert await store.update("products", {"quantity": 2}, match="nope") == 0
        rows = await store.select("products")
        assert rows == [{"id": rec["id"], "sku": "A", "quantity": 2}]
        assert await store.delete("products", match=rec["id"]) == 1
        assert await store.delete("products", match=rec["id"]) == 0
        return await store.select("products")

    assert run(scenario()) == []


def test_select_returns_copies():
    store = InMemoryStore()

    async def scenario():
        [rec] = await store.insert("products", [{"sku": "A"}])
        rows = await store.select("products", match=rec["id"])
        rows[0]["sku"] = "mutated"
        return await store.select("products", match=rec["id"])

    assert run(scenario())[0]["sku"] == "A"


def test_unknown_collection():
    with pytest.raises(PersistenceError):
        run(InMemoryStore().select("orders"))


def test_atomic_commits_together():
    store = InMemoryStore()

    async def scenario():
        [rec] = await store.insert("products", [{"quantity": 1}])
        async with store.atomic() as uow:
            uow.update("products", {"quantity": 3}, match=rec["id"], expect={"quantity": 1})
            uow.insert("transactions", [{"product_id": rec["id"], "quantity": 2}])
        return await store.select("products"), await store.select("transactions")

    products, transactions = run(scenario())
    assert products[0]["quantity"] == 3
    assert len(transactions) == 1


def test_failed_expectation_discards_every_staged_write():
    store = InMemoryStore()

    async def scenario():
        [rec] = await store.insert("products", [{"quantity": 1}])
        with pytest.raises(PersistenceError):
            async with store.atomic() as uow:
                uow.insert("transactions", [{"product_id": rec["id"], "quantity": 2}])
                uow.update("products", {"quantity": 3}, match=rec["id"], expect={"quantity": 7})
        return await store.select("products"), await store.select("transactions")

    products, transactions = run(scenario())
    assert products[0]["quantity"] == 1
    assert transactions == []


def test_exception_inside_block_skips_commit():
    store = InMemoryStore()

    async def scenario():
        with pytest.raises(KeyError):
            async with store.atomic() as uow:
                uow.insert("transactions", [{"quantity": 2}])
                raise KeyError("caller bailed")
        return await store.select("transactions")

    assert run(scenario()) == []


def test_duplicate_id_rejected():
    store = InMemoryStore()

    async def scenario():
        await store.insert("transactions", [{"id": "t1"}])
        with pytest.raises(PersistenceError):
            await store.insert("transactions", [{"id": "t2"}, {"id": "t1"}])
        return await store.select("transactions")

    assert [r["id"] for r in run(scenario())] == ["t1"]


def test_keyed_locks_serialize_holders_of_one_key():
    locks = KeyedLocks()
    order = []

    async def worker(name):
        async with locks.for_product("p1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    async def scenario():
        await asyncio.gather(worker("a"), worker("b"))

    run(scenario())
    assert order == ["a-in", "a-out", "b-in", "b-out"]


def test_keyed_locks_are_released_after_use():
    locks = KeyedLocks()

    async def scenario():
        async with locks.for_product("p1"):
            async with locks.for_product("p2"):
                assert len(locks) == 2
        for i in range(50):
            async with locks.hold(f"product:{i}"):
                pass

    run(scenario())
    assert len(locks) == 0


def test_keyed_locks_released_when_block_raises():
    locks = KeyedLocks()

    async def scenario():
        with pytest.raises(RuntimeError):
            async with locks.for_product("p1"):
                raise RuntimeError("boom")

    run(scenario())
    assert len(locks) == 0


def test_commit_touches_only_staged_records():
    store = InMemoryStore()

    async def scenario():
        [a, b] = await store.insert("products", [{"quantity": 1}, {"quantity": 2}])
        table = store._tables["products"]
        untouched = table[b["id"]]
        await store.update("products", {"quantity": 5}, match=a["id"])
        assert store._tables["products"] is table
        assert table[b["id"]] is untouched
        return await store.select("products", match=a["id"])

    assert run(scenario())[0]["quantity"] == 5
