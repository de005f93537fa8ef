# stockledger/models.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field


class TransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class StockStatus(str, Enum):
    NORMAL = "NORMAL"
    LOW = "LOW"
    OUT = "OUT"


class StockFilter(str, Enum):
    ALL = "ALL"
    LOW = "LOW"
    OUT = "OUT"


class Product(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    sku: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    min_quantity: int = 0
    price: Decimal
    initial_quantity: int
    created_at: datetime


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    product_id: str
    type: TransactionType
    quantity: int
    notes: Optional[str] = None
    created_at: datetime

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.type is TransactionType.IN else -self.quantity


class StockMovementResult(BaseModel):
    product: Product
    transaction: Transaction


class StockAudit(BaseModel):
    product_id: str
    initial_quantity: int
    ledger_total: int
    expected_quantity: int
    quantity: int
    entries: int

    @computed_field
    @property
    def consistent(self) -> bool:
        return self.expected_quantity == self.quantity


class InventoryMetrics(BaseModel):
    total: int
    low_stock: int
    out_of_stock: int
    total_value: Decimal
