import asyncio

from sdk.stockclient import StockClient
from stockledger.config import settings


async def simulate_withdrawal(client, operator, product_id, qty):
    r = await client.apply_movement_async(product_id, "OUT", qty, f"picked by {operator}")
    if r.status_code == 201:
        body = r.json()
        print(f"✅ {operator} withdrew {qty} units "
              f"(txn {body['transaction']['id']}, now {body['product']['quantity']} left)")
    elif r.status_code == 409:
        print(f"❌ {operator} rejected: {r.json()['detail']}")
    else:
        print(f"⚠️  {operator} unexpected response {r.status_code}: {r.text}")


async def main():
    c = StockClient(base_url=settings.api_url)
    c.reset()

    product = c.create_product("Bolt", "BOLT-1", "0.50", quantity=5, min_quantity=2)
    print(f"\n🔩 Created product: {product}")

    print("\n⚡ Two operators withdrawing at the same time...")
    await asyncio.gather(
        simulate_withdrawal(c, "alice", product["id"], 3),
        simulate_withdrawal(c, "bob", product["id"], 4),
    )

    print("\n📦 Final product state:", c.get_product(product["id"]))
    print("🔎 Audit:", c.audit(product["id"]))


if __name__ == "__main__":
    asyncio.run(main())
