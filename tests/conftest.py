import pytest
from fastapi.testclient import TestClient

from stockledger.main import create_app
from stockledger.service import InventoryService


@pytest.fixture
def service():
    return InventoryService(unique_sku=True)


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as c:
        yield c

