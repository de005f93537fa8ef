"""Stock levels, movement ledger and inventory-health views."""

__version__ = "0.1.0"
