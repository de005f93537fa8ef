# tests/test_catalog.py
import asyncio
from decimal import Decimal

import pytest

from stockledger.errors import NotFoundError, ValidationError
from stockledger.service import InventoryService

WIDGET = {"sku": "A1", "name": "Widget", "price": "2.50", "quantity": 10, "min_quantity": 5}


def run(coro):
    return asyncio.run(coro)


def test_create_defaults_and_ids():
    svc = InventoryService()

    async def scenario():
        a = await svc.catalog.create({"sku": "X", "name": "Thing", "price": 0})
        b = await svc.catalog.create({"sku": "Y", "name": "Other", "price": "1.25", "category": "misc"})
        return a, b, await svc.catalog.list()

    a, b, listed = run(scenario())
    assert a.quantity == 0
    assert a.min_quantity == 0
    assert a.initial_quantity == 0
    assert a.description is None
    assert b.price == Decimal("1.25")
    assert a.id != b.id
    assert [p.id for p in listed] == [a.id, b.id]


def test_create_strips_names():
    p = run(InventoryService().catalog.create({**WIDGET, "name": "  Widget  "}))
    assert p.name == "Widget"


@pytest.mark.parametrize(
    "bad",
    [
        {"name": ""},
        {"sku": ""},
        {"price": -0.01},
        {"price": "NaN"},
        {"price": None},
        {"quantity": 1.5},
        {"min_quantity": -1},
        {"quantity": True},
        {"min_quantity": False},
        {"price": True},
        {"colour": "red"},
    ],
)
def test_create_rejects_bad_fields(bad):
    svc = InventoryService()
    with pytest.raises(ValidationError):
        run(svc.catalog.create({**WIDGET, **bad}))
    assert run(svc.catalog.list()) == []


def test_create_requires_price():
    fields = dict(WIDGET)
    del fields["price"]
    with pytest.raises(ValidationError) as exc:
        run(InventoryService().catalog.create(fields))
    assert exc.value.field == "price"


def test_duplicate_sku_rejected():
    svc = InventoryService(unique_sku=True)

    async def scenario():
        await svc.catalog.create(WIDGET)
        with pytest.raises(ValidationError) as exc:
            await svc.catalog.create({**WIDGET, "name": "Copy"})
        return exc.value

    assert run(scenario()).field == "sku"


def test_duplicate_sku_allowed_when_disabled():
    svc = InventoryService(unique_sku=False)

    async def scenario():
        await svc.catalog.create(WIDGET)
        await svc.catalog.create(WIDGET)
        return await svc.catalog.list()

    assert len(run(scenario())) == 2


def test_concurrent_creates_with_same_sku():
    svc = InventoryService(unique_sku=True)

    async def scenario():
        return await asyncio.gather(
            svc.catalog.create(WIDGET), svc.catalog.create(WIDGET), return_exceptions=True
        )

    results = run(scenario())
    assert sum(isinstance(r, ValidationError) for r in results) == 1


def test_update_patch():
    svc = InventoryService()

    async def scenario():
        p = await svc.catalog.create(WIDGET)
        updated = await svc.catalog.update(p.id, {"price": "3.10", "description": "blue", "category": None})
        return p, updated, await svc.catalog.get(p.id)

    p, updated, fetched = run(scenario())
    assert updated == fetched
    assert fetched.price == Decimal("3.10")
    assert fetched.description == "blue"
    assert fetched.quantity == p.quantity
    assert fetched.created_at == p.created_at


@pytest.mark.parametrize(
    "patch,field",
    [
        ({"quantity": 11}, "quantity"),
        ({"quantity": 10, "name": "same"}, "quantity"),
        ({"id": "abc"}, "id"),
        ({"initial_quantity": 0}, "initial_quantity"),
        ({"name": None}, "name"),
        ({"price": None}, "price"),
        ({"sku": ""}, "sku"),
    ],
)
def test_update_rejections(patch, field):
    svc = InventoryService()

    async def scenario():
        p = await svc.catalog.create(WIDGET)
        with pytest.raises(ValidationError) as exc:
            await svc.catalog.update(p.id, patch)
        return p, exc.value, await svc.catalog.get(p.id)

    p, err, after = run(scenario())
    assert err.field == field
    assert after == p


def test_update_sku_collision():
    svc = InventoryService(unique_sku=True)

    async def scenario():
        await svc.catalog.create(WIDGET)
        other = await svc.catalog.create({**WIDGET, "sku": "B2"})
        # keeping its own sku is fine
        await svc.catalog.update(other.id, {"sku": "B2", "name": "Renamed"})
        with pytest.raises(ValidationError):
            await svc.catalog.update(other.id, {"sku": "A1"})

    run(scenario())


def test_empty_patch_returns_product():
    svc = InventoryService()

    async def scenario():
        p = await svc.catalog.create(WIDGET)
        return p, await svc.catalog.update(p.id, {})

    p, same = run(scenario())
    assert p == same


def test_missing_product():
    svc = InventoryService()
    with pytest.raises(NotFoundError):
        run(svc.catalog.get("nope"))
    with pytest.raises(NotFoundError):
        run(svc.catalog.update("nope", {"name": "x"}))
    with pytest.raises(NotFoundError):
        run(svc.catalog.delete("nope"))


def test_delete_tombstones_and_frees_sku():
    svc = InventoryService(unique_sku=True)

    async def scenario():
        p = await svc.catalog.create(WIDGET)
        await svc.catalog.delete(p.id)
        with pytest.raises(NotFoundError):
            await svc.catalog.delete(p.id)
        replacement = await svc.catalog.create(WIDGET)
        raw = await svc.store.select("products", match=p.id)
        return replacement, await svc.catalog.list(), raw

    replacement, listed, raw = run(scenario())
    assert listed == [replacement]
    assert raw[0]["deleted_at"] is not None
