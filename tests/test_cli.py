# tests/test_cli.py
from rich.console import Console

import cli


def _render(renderable) -> str:
    console = Console(record=True, width=140)
    console.print(renderable)
    return console.export_text()


def test_products_table_shows_status():
    text = _render(cli.products_table([
        {"id": "abc", "sku": "A1", "name": "Widget", "quantity": 5, "min_quantity": 5, "price": "2.50", "status": "LOW"},
        {"id": "def", "sku": "B2", "name": "Gadget", "quantity": 0, "min_quantity": 1, "price": "9.00", "status": "OUT"},
    ]))
    assert "Widget" in text
    assert "LOW" in text
    assert "OUT" in text
    assert "$2.50" in text


def test_metrics_panel():
    text = _render(cli.metrics_panel(
        {"total": 3, "low_stock": 2, "out_of_stock": 1, "total_value_display": "25.50"}
    ))
    assert "$25.50" in text
    assert "Out of Stock" in text


def test_transactions_table_signs_quantities():
    text = _render(cli.transactions_table(
        {"name": "Widget"},
        [
            {"type": "IN", "quantity": 5, "created_at": "2024-01-01T10:00:00Z", "notes": "delivery"},
            {"type": "OUT", "quantity": 2, "created_at": "2024-01-02T10:00:00Z"},
        ],
    ))
    assert "+5" in text
    assert "-2" in text
    assert "delivery" in text


def test_resolve_product_id_accepts_sku(monkeypatch):
    monkeypatch.setattr(cli, "product_cache", [{"id": "abc123", "sku": "A1"}])
    assert cli.resolve_product_id("A1") == "abc123"
    assert cli.resolve_product_id("abc123") == "abc123"
    assert cli.resolve_product_id("zzz") == "zzz"


def test_products_table_pads_prices_to_cents():
    text = _render(cli.products_table([
        {"id": "abc", "sku": "A1", "name": "Widget", "quantity": 1, "min_quantity": 0, "price": "2.5", "status": "NORMAL"},
        {"id": "def", "sku": "B2", "name": "Gadget", "quantity": 1, "min_quantity": 0, "price": "3", "status": "NORMAL"},
    ]))
    assert "$2.50" in text
    assert "$3.00" in text
    assert "$2.5 " not in text
