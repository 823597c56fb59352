from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from cafe_core.core.exceptions import InsufficientStock, OrderShortage, ValidationError
from cafe_core.models.inventory import InventoryItem, InventoryTransaction, TransactionType
from cafe_core.services import order_bridge
from cafe_core.services.order_bridge import IngredientRequirement


def _menu_item(name, recipe):
    ingredients = [SimpleNamespace(inventory_item_id=item_id, quantity=Decimal(qty)) for item_id, qty in recipe]
    return SimpleNamespace(id=uuid4(), name=name, ingredients=ingredients)


def test_build_requirements_scales_by_line_quantity():
    milk_id, beans_id = uuid4(), uuid4()
    latte = _menu_item("Cafe Latte", [(milk_id, "0.25"), (beans_id, "0.018")])

    requirements = order_bridge.build_requirements([{"menu_item": latte, "quantity": 2}])

    assert [(r.inventory_item_id, r.quantity) for r in requirements] == [
        (milk_id, Decimal("0.50")),
        (beans_id, Decimal("0.036")),
    ]
    assert {r.menu_item_id for r in requirements} == {latte.id}


def test_build_requirements_includes_inventory_linked_add_ons():
    syrup_id = uuid4()
    latte = _menu_item("Cafe Latte", [])
    line = {
        "menu_item": latte,
        "quantity": 3,
        "selected_add_ons": [
            {"name": "Vanilla", "inventory_item_id": str(syrup_id), "quantity": "0.02"},
            {"name": "Extra hot"},
        ],
    }

    requirements = order_bridge.build_requirements([line])

    assert len(requirements) == 1
    assert requirements[0].inventory_item_id == syrup_id
    assert requirements[0].quantity == Decimal("0.06")


def test_build_requirements_groups_shared_ingredients():
    milk_id, beans_id = uuid4(), uuid4()
    latte = _menu_item("Cafe Latte", [(milk_id, "0.25"), (beans_id, "0.018")])
    flat_white = _menu_item("Flat White", [(milk_id, "0.15"), (beans_id, "0.018")])

    requirements = order_bridge.build_requirements([
        {"menu_item": latte, "quantity": 1},
        {"menu_item": flat_white, "quantity": 2},
        {"menu_item": latte, "quantity": 1},
    ])

    assert [(r.inventory_item_id, r.quantity) for r in requirements] == [
        (milk_id, Decimal("0.80")),
        (beans_id, Decimal("0.072")),
    ]
    milk = requirements[0]
    assert milk.menu_item_names == ["Cafe Latte", "Flat White"]
    assert milk.menu_item_id is None


def test_build_requirements_drops_zero_quantities():
    tea = _menu_item("Hot Water", [(uuid4(), "0")])
    assert order_bridge.build_requirements([{"menu_item": tea, "quantity": 1}]) == []


@pytest.mark.asyncio
async def test_consume_without_connection_is_atomic(make_item):
    milk = await make_item(name="Whole Milk", quantity=Decimal("10"))
    beans = await make_item(name="Espresso Beans", quantity=Decimal("0.01"))
    requirements = [
        IngredientRequirement(milk.id, Decimal("6")),
        IngredientRequirement(beans.id, Decimal("0.018")),
    ]

    with pytest.raises(InsufficientStock):
        await order_bridge.consume(requirements, policy=order_bridge.STRICT)

    assert (await InventoryItem.get(id=milk.id)).quantity == Decimal("10")
    assert await InventoryTransaction.filter(type=TransactionType.USAGE).count() == 0


@pytest.mark.asyncio
async def test_lenient_reports_unknown_ingredient(make_item):
    milk = await make_item(name="Whole Milk", quantity=Decimal("10"))
    ghost = uuid4()

    outcomes = await order_bridge.consume(
        [IngredientRequirement(milk.id, Decimal("1")), IngredientRequirement(ghost, Decimal("1"))],
        policy=order_bridge.LENIENT,
    )

    by_item = {o.inventory_item_id: o for o in outcomes}
    assert by_item[milk.id].consumed is True
    assert by_item[milk.id].new_quantity == Decimal("9")
    assert by_item[ghost].consumed is False
    assert by_item[ghost].as_dict()["new_quantity"] is None


@pytest.mark.asyncio
async def test_strict_unknown_ingredient_is_reported_as_shortage(db):
    ghost = uuid4()
    with pytest.raises(OrderShortage) as excinfo:
        await order_bridge.consume([IngredientRequirement(ghost, Decimal("1"))], policy="strict")

    assert excinfo.value.status_code == 400
    assert excinfo.value.details == [
        {"inventory_item_id": str(ghost), "requested": "1", "error": "Item not found in inventory"}
    ]


@pytest.mark.asyncio
async def test_unknown_policy_is_rejected(db):
    with pytest.raises(ValidationError):
        await order_bridge.consume([], policy="optimistic")
