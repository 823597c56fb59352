from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from cafe_core.core.db import MODELS_MODULES
from cafe_core.main import app
from cafe_core.models.order import MenuIngredient, MenuItem
from cafe_core.services import ledger


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database per test with all schemas generated."""
    await Tortoise.init(
        db_url=f"sqlite://{tmp_path / 'cafe_test.db'}",
        modules={"models": MODELS_MODULES},
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
async def client(db):
    # ASGITransport does not run the lifespan, so the test database stays in place
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def make_item(db):
    """Creates an inventory item through the ledger (opening stock is recorded as a restock)."""
    async def _make(**overrides):
        data = {
            "name": "Whole Milk",
            "category": "Dairy",
            "unit": "litre",
            "quantity": Decimal("10"),
            "cost_per_unit": Decimal("1.10"),
            "reorder_point": Decimal("5"),
            "auto_reorder_notify": False,
        }
        data.update(overrides)
        return await ledger.create_item(data)
    return _make


@pytest.fixture
async def make_menu_item(db):
    """Creates a menu item whose recipe is [(inventory_item, quantity_per_serving), ...]."""
    async def _make(recipe, name="Cafe Latte", price="3.80"):
        menu_item = await MenuItem.create(name=name, category="Coffee", price=Decimal(price))
        for inventory_item, qty in recipe:
            await MenuIngredient.create(
                menu_item=menu_item,
                inventory_item=inventory_item,
                quantity=Decimal(str(qty)),
                unit=inventory_item.unit,
            )
        return menu_item
    return _make
