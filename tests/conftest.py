import os

# Must be set before main is imported so the limiter starts disabled
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from routes import get_expenses_collection


@pytest.fixture()
def collection():
    return AsyncMongoMockClient()["expense_tracker_test"]["expenses"]


@pytest.fixture()
def client(collection):
    app.dependency_overrides[get_expenses_collection] = lambda: collection
    # Not entered as a context manager: the lifespan would connect to a real MongoDB
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_expense(client):
    def _make(**overrides):
        payload = {"title": "Lunch", "amount": 12.5, "category": "Food"}
        payload.update(overrides)
        response = client.post("/api/expenses", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make
