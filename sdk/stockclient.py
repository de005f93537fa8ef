# sdk/stockclient.py
from typing import Optional, Dict, Any, List

import httpx
import requests
from rich import print

from stockledger.config import settings


class StockAPIError(requests.HTTPError):
    """Non-2xx reply from the stock-ledger API, with the server's error code."""

    def __init__(self, status_code: int, body: Dict[str, Any], response=None):
        self.status_code = status_code
        self.code = body.get("code", "http_error")
        self.detail = body.get("detail", "")
        self.body = body
        super().__init__(f"HTTP {status_code} {self.code}: {self.detail}", response=response)


def _check(r) -> Any:
    if r.status_code >= 400:
        try:
            body = r.json()
        except ValueError:
            body = {"detail": r.text}
        if not isinstance(body, dict):
            body = {"detail": str(body)}
        raise StockAPIError(r.status_code, body, response=r)
    if r.status_code == 204 or not r.content:
        return None
    return r.json()


class StockClient:
    """Thin client for the stock-ledger HTTP API.

    ``session`` defaults to a ``requests.Session``; anything with the same
    get/post/patch/delete surface works, e.g. FastAPI's TestClient.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 10,
        session=None,
    ):
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def reset(self):
        return _check(self.session.post(self._url("/reset"), timeout=self.timeout))

    # Products
    def create_product(
        self,
        name: str,
        sku: str,
        price,
        quantity: int = 0,
        min_quantity: int = 0,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "name": name,
            "sku": sku,
            "price": str(price),
            "quantity": quantity,
            "min_quantity": min_quantity,
            "category": category,
            "description": description,
        }
        return _check(self.session.post(self._url("/products"), json=payload, timeout=self.timeout))

    def list_products(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"status": status} if status else {}
        return _check(self.session.get(self._url("/products"), params=params, timeout=self.timeout))

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return _check(self.session.get(self._url(f"/products/{product_id}"), timeout=self.timeout))

    def update_product(self, product_id: str, **fields) -> Dict[str, Any]:
        if "price" in fields and fields["price"] is not None:
            fields["price"] = str(fields["price"])
        r = self.session.patch(self._url(f"/products/{product_id}"), json=fields, timeout=self.timeout)
        return _check(r)

    def delete_product(self, product_id: str) -> None:
        return _check(self.session.delete(self._url(f"/products/{product_id}"), timeout=self.timeout))

    def product_status(self, product_id: str) -> str:
        r = self.session.get(self._url(f"/products/{product_id}/status"), timeout=self.timeout)
        return _check(r)["status"]

    # Stock movements
    def apply_movement(self, product_id: str, type_: str, quantity: int, notes: Optional[str] = None):
        payload = {"type": type_, "quantity": quantity, "notes": notes}
        r = self.session.post(
            self._url(f"/products/{product_id}/transactions"), json=payload, timeout=self.timeout
        )
        return _check(r)

    def receive(self, product_id: str, quantity: int, notes: Optional[str] = None):
        return self.apply_movement(product_id, "IN", quantity, notes)

    def withdraw(self, product_id: str, quantity: int, notes: Optional[str] = None):
        return self.apply_movement(product_id, "OUT", quantity, notes)

    async def apply_movement_async(
        self, product_id: str, type_: str, quantity: int, notes: Optional[str] = None
    ) -> httpx.Response:
        # returns the raw response so callers can inspect 409s
        payload = {"type": type_, "quantity": quantity, "notes": notes}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self._url(f"/products/{product_id}/transactions"), json=payload)

    def list_transactions(self, product_id: str) -> List[Dict[str, Any]]:
        r = self.session.get(self._url(f"/products/{product_id}/transactions"), timeout=self.timeout)
        return _check(r)

    def audit(self, product_id: str) -> Dict[str, Any]:
        return _check(self.session.get(self._url(f"/products/{product_id}/audit"), timeout=self.timeout))

    # Read-side views
    def metrics(self) -> Dict[str, Any]:
        return _check(self.session.get(self._url("/metrics"), timeout=self.timeout))


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="stock-ledger client")
    parser.add_argument("--url", default=settings.api_url, help="API base URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lp = subparsers.add_parser("list-products", help="List products")
    lp.add_argument("--status", choices=["all", "low", "out"], default="all")

    cp = subparsers.add_parser("create-product", help="Create a product")
    cp.add_argument("--name", required=True)
    cp.add_argument("--sku", required=True)
    cp.add_argument("--price", required=True, help="Unit price, e.g. 2.50")
    cp.add_argument("--quantity", type=int, default=0)
    cp.add_argument("--min-quantity", type=int, default=0)
    cp.add_argument("--category")

    for name, help_text in (("stock-in", "Receive stock"), ("stock-out", "Withdraw stock")):
        mv = subparsers.add_parser(name, help=help_text)
        mv.add_argument("--product-id", required=True)
        mv.add_argument("--qty", type=int, required=True)
        mv.add_argument("--notes")

    hist = subparsers.add_parser("history", help="Show a product's ledger")
    hist.add_argument("--product-id", required=True)

    subparsers.add_parser("metrics", help="Inventory totals")

    args = parser.parse_args()
    c = StockClient(base_url=args.url)

    if args.command == "list-products":
        print(c.list_products(args.status))
    elif args.command == "create-product":
        print(c.create_product(args.name, args.sku, args.price, args.quantity, args.min_quantity, args.category))
    elif args.command == "stock-in":
        print(c.receive(args.product_id, args.qty, args.notes))
    elif args.command == "stock-out":
        print(c.withdraw(args.product_id, args.qty, args.notes))
    elif args.command == "history":
        print(c.list_transactions(args.product_id))
    elif args.command == "metrics":
        print(c.metrics())
