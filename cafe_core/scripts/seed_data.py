# cafe_core/scripts/seed_data.py
import asyncio
import logging
from decimal import Decimal
from tortoise import Tortoise
from cafe_core.core.db import init_db
from cafe_core.models.inventory import InventoryItem, Supplier
from cafe_core.models.order import MenuIngredient, MenuItem
from cafe_core.services import ledger

log = logging.getLogger("seed_data")

INVENTORY = [
    # name, category, unit, quantity, cost_per_unit, reorder_point, auto_reorder_quantity
    ("Whole Milk", "Dairy", "litre", "40", "1.10", "10", "30"),
    ("Espresso Beans", "Beverages", "kg", "12", "18.50", "3", "10"),
    ("Vanilla Syrup", "Beverages", "litre", "5", "7.00", "1", "4"),
    ("Croissant Dough", "Baking", "piece", "60", "0.45", "15", None),
]

MENU = [
    # name, category, price, [(inventory name, quantity per serving, unit)]
    ("Cafe Latte", "Coffee", "3.80", [("Espresso Beans", "0.018", "kg"), ("Whole Milk", "0.25", "litre")]),
    ("Vanilla Latte", "Coffee", "4.30", [("Espresso Beans", "0.018", "kg"), ("Whole Milk", "0.25", "litre"), ("Vanilla Syrup", "0.02", "litre")]),
    ("Butter Croissant", "Bakery", "2.50", [("Croissant Dough", "1", "piece")]),
]


async def seed():
    supplier, _ = await Supplier.get_or_create(
        name="Valley Dairy & Roasters",
        defaults={
            "contact_person": "Sam Ortiz",
            "email": "orders@valleydairy.example",
            "phone": "+1-555-0100",
            "address": "12 Creamery Lane",
        },
    )
    log.info(f"Supplier: {supplier.id}")

    # Create inventory through the ledger so the opening stock has a restock record
    stock = {}
    for name, category, unit, qty, cost, reorder_point, reorder_qty in INVENTORY:
        item = await InventoryItem.get_or_none(name=name, is_active=True)
        if not item:
            item = await ledger.create_item({
                "name": name,
                "category": category,
                "unit": unit,
                "quantity": Decimal(qty),
                "cost_per_unit": Decimal(cost),
                "reorder_point": Decimal(reorder_point),
                "supplier_id": supplier.id,
                "auto_reorder_notify": True,
                "auto_reorder_quantity": Decimal(reorder_qty) if reorder_qty else None,
            }, performed_by="Seed")
        stock[name] = item
    log.info(f"Inventory seeded: {len(stock)} items.")

    for name, category, price, recipe in MENU:
        menu_item, created = await MenuItem.get_or_create(name=name, defaults={"category": category, "price": Decimal(price)})
        if created:
            for ingredient, qty, unit in recipe:
                await MenuIngredient.create(
                    menu_item=menu_item,
                    inventory_item=stock[ingredient],
                    quantity=Decimal(qty),
                    unit=unit,
                )
        log.info(f"Menu item: {menu_item.name} {menu_item.id}")


async def main():
    logging.basicConfig(level=logging.INFO)
    await init_db()
    await seed()
    await Tortoise.close_connections()

if __name__ == "__main__":
    asyncio.run(main())
