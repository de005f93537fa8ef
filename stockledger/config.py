import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    api_title: str = os.getenv("STOCKLEDGER_API_TITLE", "stock-ledger (in-memory)")
    log_level: str = os.getenv("STOCKLEDGER_LOG_LEVEL", "INFO")

    # SKU uniqueness among live products
    unique_sku: bool = _as_bool(os.getenv("STOCKLEDGER_UNIQUE_SKU", "true"))

    # Seconds awaited on every store call; 0 still yields to the event loop
    store_latency: float = float(os.getenv("STOCKLEDGER_STORE_LATENCY", "0"))

    # SDK / CLI
    api_url: str = os.getenv("STOCKLEDGER_API_URL", "http://127.0.0.1:8085")
    port: int = int(os.getenv("STOCKLEDGER_PORT", "8085"))


settings = Settings()
