"""Suppliers, inventory categories and menu items with their recipes."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.config import DEFAULT_INVENTORY_CATEGORIES
from cafe_core.core.exceptions import NotFound, ValidationError
from cafe_core.models.inventory import InventoryItem, Supplier
from cafe_core.models.order import MenuIngredient, MenuItem
from cafe_core.services.ledger import ALL_CATEGORIES

log = logging.getLogger("catalog")


async def list_suppliers(active_only: bool = False) -> List[Supplier]:
    query = Supplier.all()
    if active_only:
        query = query.filter(is_active=True)
    return await query.order_by("name")


async def create_supplier(data: Dict[str, Any]) -> Supplier:
    supplier = await Supplier.create(**data)
    log.info(f"Supplier '{supplier.name}' created.")
    return supplier


async def update_supplier(supplier_id: UUID, data: Dict[str, Any]) -> Supplier:
    supplier = await Supplier.get_or_none(id=supplier_id)
    if not supplier:
        raise NotFound(f"Supplier {supplier_id} not found.")
    if data:
        supplier.update_from_dict(data)
        await supplier.save()
    return supplier


async def deactivate_supplier(supplier_id: UUID) -> None:
    """Suppliers stay referenced by items and notifications, so they are only deactivated."""
    updated = await Supplier.filter(id=supplier_id).update(is_active=False)
    if not updated:
        raise NotFound(f"Supplier {supplier_id} not found.")


async def list_inventory_categories() -> List[str]:
    """Categories in use merged with the defaults, sorted, with "All" first."""
    in_use = await InventoryItem.filter(is_active=True).distinct().values_list("category", flat=True)
    names = sorted(set(in_use) | set(DEFAULT_INVENTORY_CATEGORIES))
    return [ALL_CATEGORIES] + [name for name in names if name != ALL_CATEGORIES]


async def create_menu_item(data: Dict[str, Any], ingredients: List[Dict[str, Any]]) -> MenuItem:
    """`ingredients` is [{"inventory_item_id": UUID, "quantity": Decimal, "unit": str}]."""
    async with in_transaction() as conn:
        item_ids = {ing["inventory_item_id"] for ing in ingredients}
        found = await InventoryItem.filter(id__in=list(item_ids)).using_db(conn).values_list("id", flat=True)
        found_ids = {str(i) for i in found}
        missing = sorted(str(i) for i in item_ids if str(i) not in found_ids)
        if missing:
            raise ValidationError("Unknown inventory items in recipe.", details={"missing_ids": missing})

        menu_item = await MenuItem.create(using_db=conn, **data)
        for ing in ingredients:
            await MenuIngredient.create(
                menu_item=menu_item,
                inventory_item_id=ing["inventory_item_id"],
                quantity=ing["quantity"],
                unit=ing["unit"],
                using_db=conn,
            )
    return await get_menu_item(menu_item.id)


async def get_menu_item(menu_item_id: UUID) -> MenuItem:
    menu_item = await MenuItem.get_or_none(id=menu_item_id).prefetch_related("ingredients")
    if not menu_item:
        raise NotFound(f"Menu item {menu_item_id} not found.")
    return menu_item


async def list_menu_items(category: Optional[str] = None, available_only: bool = False) -> List[MenuItem]:
    query = MenuItem.all()
    if category and category != ALL_CATEGORIES:
        query = query.filter(category=category)
    if available_only:
        query = query.filter(is_available=True)
    return await query.order_by("category", "name").prefetch_related("ingredients")
