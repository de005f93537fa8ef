#!/usr/bin/env python
from sdk.stockclient import StockClient, StockAPIError
from stockledger.config import settings


def main():
    c = StockClient(base_url=settings.api_url)

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    c.reset()

    # -----------------------------
    # Register products
    # -----------------------------
    print("\nCreating products...")
    widget = c.create_product("Widget", "A1", "2.50", quantity=10, min_quantity=5, category="parts")
    gadget = c.create_product("Gadget", "B7", "12.00", quantity=5, min_quantity=5, category="parts")
    print(widget)
    print(gadget)

    # -----------------------------
    # Stock movements
    # -----------------------------
    print("\nReceiving 5 widgets...")
    print(c.receive(widget["id"], 5, "supplier delivery"))

    print("\nWithdrawing 20 widgets (should fail)...")
    try:
        c.withdraw(widget["id"], 20)
    except StockAPIError as e:
        print(f"rejected: {e.code} ({e.detail})")

    print("\nWithdrawing 5 gadgets...")
    print(c.withdraw(gadget["id"], 5, "shop floor"))

    # -----------------------------
    # Read-side views
    # -----------------------------
    print("\nLow stock:")
    print(c.list_products("low"))
    print("\nOut of stock:")
    print(c.list_products("out"))
    print("\nMetrics:")
    print(c.metrics())

    print("\nWidget ledger and audit:")
    print(c.list_transactions(widget["id"]))
    print(c.audit(widget["id"]))


if __name__ == "__main__":
    main()
