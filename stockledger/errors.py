# stockledger/errors.py
from typing import Optional

# Every failure the inventory core reports to its callers. Each class carries a
# machine-readable ``code`` so the HTTP layer and SDK never match on messages.


class InventoryError(Exception):
    code = "inventory_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"detail": self.message, "code": self.code}


class ValidationError(InventoryError):
    """Malformed caller input. Never mutates state."""

    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        return out


class NotFoundError(InventoryError):
    code = "not_found"
    status_code = 404

    def __init__(self, product_id: str):
        super().__init__(f"product not found: {product_id}")
        self.product_id = product_id


class InsufficientStockError(InventoryError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: str, available: int, requested: int):
        super().__init__(
            f"insufficient stock for {product_id}: have {available}, need {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested

    def to_dict(self):
        out = super().to_dict()
        out.update({"available": self.available, "requested": self.requested})
        return out


class PersistenceError(InventoryError):
    """The backing store failed to read or write."""

    code = "persistence_error"
    status_code = 503
