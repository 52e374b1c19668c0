"""
Shared fixtures.

The environment is pinned before the application is imported: a throwaway
SQLite database, cheap bcrypt rounds, no ledger export and a Redis URL
that refuses connections immediately.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="instabite-tests-"))

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LEDGER_EXPORT_ENABLED"] = "false"
os.environ["DATA_DIRECTORY"] = str(_TMP / "data")
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"

from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402
from app.database import Base, engine, async_session_maker  # noqa: E402
from app.main import app  # noqa: E402


async def reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def client():
    asyncio.run(reset_schema())
    with TestClient(app) as c:
        yield c


@pytest.fixture
async def db():
    await reset_schema()
    async with async_session_maker() as session:
        yield session


# =============================================================================
# API HELPERS
# =============================================================================

CAFE_X = {
    "name": "Cafe X",
    "email": "a@x.com",
    "phone": "123",
    "address": "St1",
    "password": "pw",
}

TEA_AND_BUN = [
    {"name": "Tea", "price": 20, "quantity": 2},
    {"name": "Bun", "price": 15, "quantity": 1},
]


def register(client, **overrides) -> dict:
    payload = {**CAFE_X, **overrides}
    response = client.post("/api/restaurant/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["restaurant"]


def place_order(client, restaurant_id: str, items=None, **overrides) -> dict:
    payload = {
        "restaurantId": restaurant_id,
        "customerName": "Asha",
        "customerPhone": "9876543210",
        "customerAddress": "4 Park Street",
        "items": items if items is not None else TEA_AND_BUN,
        **overrides,
    }
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["order"]


# =============================================================================
# MODEL BUILDERS (unsaved instances for the renderer)
# =============================================================================

def make_restaurant(**overrides) -> models.Restaurant:
    fields = dict(
        id="r1",
        name="Cafe X",
        email="a@x.com",
        phone="123",
        address="St1",
        password_hash="x",
        upi_id="cafex@upi",
        gstin="29ABCDE1234F1Z5",
        menu=[],
    )
    fields.update(overrides)
    return models.Restaurant(**fields)


def make_order(line_count: int = 2, **overrides) -> models.Order:
    items = [
        {"name": f"Item {i}", "price": 10, "quantity": 1, "item_total": 10}
        for i in range(line_count)
    ]
    fields = dict(
        id="o1",
        order_id="IB123456ABC",
        restaurant_id="r1",
        customer_name="Asha",
        customer_phone="9876543210",
        customer_address="4 Park Street",
        items=items,
        total_amount=10.0 * line_count,
        status="pending",
        payment_method="UPI",
        bill_generated=False,
        order_date=datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return models.Order(**fields)
