import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock, MagicMock
from uuid import uuid4

from cafe_core.main import app
from cafe_core.models.order import OrderStatus


@pytest.fixture
def test_client():
    return TestClient(app)


def _mock_order(status=OrderStatus.PENDING):
    mock_order = MagicMock()
    mock_order.id = uuid4()
    mock_order.customer_name = "Ana"
    mock_order.table_id = "T4"
    mock_order.status = status
    mock_order.total_amount = Decimal("7.60")
    mock_order.created_at = "2024-05-01T10:30:00"
    mock_order.items = []
    return mock_order


class TestOrderRoutes:
    def test_create_order_success(self, test_client):
        """Order creation returns 201 with the inventory outcomes"""
        with patch('cafe_core.api.v1.orders.place_order', new_callable=AsyncMock) as mock_place_order:
            mock_place_order.return_value = (_mock_order(), [])

            order_data = {
                "customer_name": "Ana",
                "items": [{"menu_item_id": str(uuid4()), "quantity": 2}]
            }

            response = test_client.post("/api/v1/orders", json=order_data)
            assert response.status_code == 201
            body = response.json()
            assert body["success"] is True
            assert body["data"]["status"] == "pending"
            assert body["data"]["inventory"] == []

    def test_create_order_empty_items(self, test_client):
        """Validation for empty items"""
        order_data = {"customer_name": "Ana", "items": []}

        response = test_client.post("/api/v1/orders", json=order_data)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    def test_create_order_bad_quantity(self, test_client):
        order_data = {"customer_name": "Ana", "items": [{"menu_item_id": str(uuid4()), "quantity": 0}]}

        response = test_client.post("/api/v1/orders", json=order_data)
        assert response.status_code == 400
        fields = [d["field"] for d in response.json()["error"]["details"]]
        assert "body.items.0.quantity" in fields

    def test_get_order_success(self, test_client):
        with patch('cafe_core.api.v1.orders.get_order_by_id', new_callable=AsyncMock) as mock_get_order:
            mock_get_order.return_value = _mock_order()

            response = test_client.get(f"/api/v1/orders/{uuid4()}")
            assert response.status_code == 200
            assert response.json()["data"]["customer_name"] == "Ana"

    def test_unknown_route_uses_error_envelope(self, test_client):
        response = test_client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "http_error"


# --- End-to-end through the HTTP layer (SQLite) ---

MILK = {
    "name": "Whole Milk",
    "category": "Dairy",
    "unit": "litre",
    "quantity": "10",
    "cost_per_unit": "1.10",
    "reorder_point": "5",
    "auto_reorder_notify": True,
    "auto_reorder_threshold": "5",
    "auto_reorder_quantity": "20",
}


async def _create_milk(client, **overrides):
    response = await client.post("/api/v1/inventory/items", json={**MILK, **overrides})
    assert response.status_code == 201
    return response.json()["data"]


async def _create_latte(client, milk_id, milk_per_serving="6"):
    response = await client.post("/api/v1/menu/items", json={
        "name": "Cafe Latte",
        "price": "3.80",
        "category": "Coffee",
        "ingredients": [{"inventory_item_id": milk_id, "quantity": milk_per_serving, "unit": "litre"}],
    })
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_item_lifecycle(client):
    milk = await _create_milk(client)
    assert Decimal(milk["quantity"]) == Decimal("10")
    assert milk["is_low_stock"] is False

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert response.status_code == 200

    response = await client.put(f"/api/v1/inventory/items/{milk['id']}", json={"quantity": "3"})
    assert response.status_code == 200
    assert response.json()["data"]["is_low_stock"] is True

    response = await client.get("/api/v1/inventory/items", params={"low_stock": "true"})
    assert [i["id"] for i in response.json()["data"]["items"]] == [milk["id"]]

    response = await client.delete(f"/api/v1/inventory/items/{milk['id']}")
    assert response.status_code == 204

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_manual_transactions(client):
    milk = await _create_milk(client)

    response = await client.post("/api/v1/inventory/transactions", json={
        "inventory_item_id": milk["id"], "type": "usage", "quantity": "6", "performed_by": "Barista",
    })
    assert response.status_code == 201
    data = response.json()["data"]
    assert Decimal(data["item"]["quantity"]) == Decimal("4")
    assert Decimal(data["transaction"]["previous_quantity"]) == Decimal("10")
    assert data["notification"]["status"] == "pending"

    response = await client.post("/api/v1/inventory/transactions", json={
        "inventory_item_id": milk["id"], "type": "waste", "quantity": "50", "performed_by": "Barista",
    })
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "insufficient_stock"
    assert Decimal(error["details"]["available"]) == Decimal("4")

    response = await client.post("/api/v1/inventory/transactions", json={
        "inventory_item_id": milk["id"], "type": "adjustment", "quantity": "0", "performed_by": "Manager",
    })
    assert response.status_code == 201
    assert Decimal(response.json()["data"]["item"]["quantity"]) == Decimal("0")

    response = await client.post("/api/v1/inventory/transactions", json={
        "inventory_item_id": milk["id"], "type": "restock", "quantity": "0", "performed_by": "Manager",
    })
    assert response.status_code == 400

    response = await client.get("/api/v1/inventory/transactions", params={"item_id": milk["id"], "limit": 2})
    data = response.json()["data"]
    assert data["pagination"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}
    assert len(data["transactions"]) == 2


@pytest.mark.asyncio
async def test_order_flow_consumes_stock(client):
    milk = await _create_milk(client)
    latte = await _create_latte(client, milk["id"])

    response = await client.post("/api/v1/orders", json={
        "customer_name": "Ana",
        "table_id": "T4",
        "items": [{"menu_item_id": latte["id"], "quantity": 1}],
    })
    assert response.status_code == 201
    data = response.json()["data"]
    assert Decimal(data["total_amount"]) == Decimal("3.80")
    assert data["inventory"][0]["consumed"] is True
    assert Decimal(data["inventory"][0]["new_quantity"]) == Decimal("4")

    response = await client.get("/api/v1/inventory/notifications", params={"status": "pending"})
    notifications = response.json()["data"]["notifications"]
    assert len(notifications) == 1

    # Not enough milk left for a second latte: the whole order is refused
    response = await client.post("/api/v1/orders", json={
        "customer_name": "Ben",
        "items": [{"menu_item_id": latte["id"], "quantity": 1}],
    })
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "insufficient_stock"

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert Decimal(response.json()["data"]["quantity"]) == Decimal("4")

    order_id = data["order_id"]
    response = await client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "completed"})
    assert response.status_code == 200
    response = await client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "preparing"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_state"


@pytest.mark.asyncio
async def test_reorder_notification_received_restocks(client):
    milk = await _create_milk(client)
    await client.post("/api/v1/inventory/transactions", json={
        "inventory_item_id": milk["id"], "type": "usage", "quantity": "7", "performed_by": "Barista",
    })
    response = await client.get("/api/v1/inventory/notifications")
    notification_id = response.json()["data"]["notifications"][0]["id"]

    response = await client.put(f"/api/v1/inventory/notifications/{notification_id}", json={"status": "received"})
    assert response.status_code == 400

    response = await client.put(
        f"/api/v1/inventory/notifications/{notification_id}",
        json={"status": "ordered", "order_reference": "PO-7"},
    )
    assert response.json()["data"]["status"] == "ordered"

    response = await client.put(f"/api/v1/inventory/notifications/{notification_id}", json={"status": "received"})
    assert response.status_code == 200

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert Decimal(response.json()["data"]["quantity"]) == Decimal("23")


@pytest.mark.asyncio
async def test_batches_and_categories(client):
    milk = await _create_milk(client, category="Cold Storage")

    response = await client.post("/api/v1/inventory/batches", json={
        "name": "Monday delivery",
        "performed_by": "Jo",
        "items": [{"inventory_item_id": milk["id"], "quantity": "12"}],
    })
    assert response.status_code == 201
    batch = response.json()["data"]
    assert batch["status"] == "pending"

    response = await client.put(f"/api/v1/inventory/batches/{batch['id']}", json={"action": "execute"})
    assert response.json()["data"]["status"] == "completed"
    response = await client.put(f"/api/v1/inventory/batches/{batch['id']}", json={"action": "execute"})
    assert response.status_code == 400

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert Decimal(response.json()["data"]["quantity"]) == Decimal("22")

    response = await client.get("/api/v1/inventory/categories")
    categories = response.json()["data"]["categories"]
    assert categories[0] == "All"
    assert "Cold Storage" in categories
    assert "Dairy" in categories


@pytest.mark.asyncio
async def test_suppliers(client):
    response = await client.post("/api/v1/inventory/suppliers", json={
        "name": "Valley Dairy",
        "contact_person": "Sam",
        "email": "orders@valley.example",
        "phone": "555-0100",
        "address": "12 Creamery Lane",
    })
    assert response.status_code == 201
    supplier_id = response.json()["data"]["id"]

    milk = await _create_milk(client, supplier_id=supplier_id)
    assert milk["supplier_id"] == supplier_id

    response = await client.delete(f"/api/v1/inventory/suppliers/{supplier_id}")
    assert response.status_code == 204

    response = await client.get("/api/v1/inventory/suppliers", params={"active_only": "true"})
    assert response.json()["data"]["suppliers"] == []


@pytest.mark.asyncio
async def test_menu_item_requires_known_ingredients(client):
    response = await client.post("/api/v1/menu/items", json={
        "name": "Mystery Latte",
        "price": "4.00",
        "category": "Coffee",
        "ingredients": [{"inventory_item_id": str(uuid4()), "quantity": "1", "unit": "litre"}],
    })
    assert response.status_code == 400

    milk = await _create_milk(client)
    latte = await _create_latte(client, milk["id"], milk_per_serving="0.25")
    response = await client.get(f"/api/v1/menu/items/{latte['id']}")
    ingredients = response.json()["data"]["ingredients"]
    assert Decimal(ingredients[0]["quantity"]) == Decimal("0.25")


@pytest.mark.asyncio
async def test_item_update_rejects_null_for_required_fields(client):
    milk = await _create_milk(client)

    for field in ("name", "category", "unit", "cost_per_unit", "reorder_point", "auto_reorder_notify"):
        response = await client.put(f"/api/v1/inventory/items/{milk['id']}", json={field: None})
        assert response.status_code == 400, field
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["details"][0]["field"] == f"body.{field}"

    response = await client.get(f"/api/v1/inventory/items/{milk['id']}")
    assert response.json()["data"]["name"] == "Whole Milk"

    # Optional settings can still be cleared
    response = await client.put(
        f"/api/v1/inventory/items/{milk['id']}",
        json={"sku": None, "location": None, "auto_reorder_threshold": None},
    )
    assert response.status_code == 200
    assert response.json()["data"]["sku"] is None


@pytest.mark.asyncio
async def test_supplier_update_rejects_null_for_required_fields(client):
    response = await client.post("/api/v1/inventory/suppliers", json={
        "name": "Valley Dairy",
        "contact_person": "Sam",
        "email": "orders@valley.example",
        "phone": "555-0100",
        "address": "12 Creamery Lane",
        "notes": "Delivers Mondays",
    })
    supplier_id = response.json()["data"]["id"]

    response = await client.put(f"/api/v1/inventory/suppliers/{supplier_id}", json={"contact_person": None})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"

    response = await client.put(f"/api/v1/inventory/suppliers/{supplier_id}", json={"notes": None})
    assert response.status_code == 200
    assert response.json()["data"]["contact_person"] == "Sam"
    assert response.json()["data"]["notes"] is None


@pytest.mark.asyncio
async def test_order_with_retired_ingredient_is_refused(client):
    milk = await _create_milk(client)
    latte = await _create_latte(client, milk["id"])
    await client.delete(f"/api/v1/inventory/items/{milk['id']}")

    response = await client.post("/api/v1/orders", json={
        "customer_name": "Ana",
        "items": [{"menu_item_id": latte["id"], "quantity": 1}],
    })

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "insufficient_stock"
    [missing] = error["details"]
    assert missing["inventory_item_id"] == milk["id"]
    assert missing["error"] == "Item not found in inventory"
    assert Decimal(missing["requested"]) == Decimal("6")
