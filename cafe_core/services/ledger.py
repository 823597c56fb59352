"""
Inventory Ledger: the authoritative current quantity of every inventory item.

Every quantity change in the system (order consumption, manual transactions, item edits,
batch completion, received reorders) goes through `adjust_quantity` / `set_quantity`, which
lock the item row, enforce quantity >= 0, write the new quantity together with its
transaction record, and run the reorder notifier when the quantity went down.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.exceptions import InsufficientStock, NotFound, ValidationError
from cafe_core.models.inventory import InventoryItem, InventoryTransaction, Supplier, TransactionType
from cafe_core.models.reorder import ReorderNotification
from cafe_core.services import reorder
from cafe_core.services.transactions import TransactionContext, record

log = logging.getLogger("inventory_ledger")

ALL_CATEGORIES = "All"


@dataclass
class AdjustmentResult:
    item: InventoryItem
    transaction: InventoryTransaction
    notification: Optional[ReorderNotification] = None


async def get_item(item_id: UUID, include_inactive: bool = False) -> InventoryItem:
    query = InventoryItem.filter(id=item_id)
    if not include_inactive:
        query = query.filter(is_active=True)
    item = await query.first()
    if not item:
        raise NotFound(f"Inventory item {item_id} not found.")
    return item


async def list_items(
    category: Optional[str] = None,
    low_stock: bool = False,
    auto_reorder_only: bool = False,
    include_inactive: bool = False,
) -> List[InventoryItem]:
    """Lists items for a category ("All" or None for every category), sorted by category and name."""
    query = InventoryItem.all()
    if not include_inactive:
        query = query.filter(is_active=True)
    if category and category != ALL_CATEGORIES:
        query = query.filter(category=category)
    if auto_reorder_only:
        query = query.filter(auto_reorder_notify=True)

    items = await query.order_by("category", "name")
    if low_stock:
        items = [item for item in items if item.is_low_stock]
    return items


async def _lock_item(item_id: UUID, conn: Any, include_inactive: bool = False) -> InventoryItem:
    query = InventoryItem.filter(id=item_id)
    if not include_inactive:
        query = query.filter(is_active=True)
    # Row lock: concurrent adjusters of this item queue here until we commit
    item = await query.using_db(conn).select_for_update().first()
    if not item:
        raise NotFound(f"Inventory item {item_id} not found.")
    return item


def _check_sign(delta: Decimal, tx_type: TransactionType):
    if tx_type == TransactionType.RESTOCK and delta <= 0:
        raise ValidationError("Restock quantity must be positive.", details={"quantity": str(delta)})
    if tx_type in (TransactionType.USAGE, TransactionType.WASTE) and delta >= 0:
        raise ValidationError(f"{tx_type.value.capitalize()} must decrease the quantity.", details={"quantity": str(delta)})


async def _apply(
    conn: Any,
    item: InventoryItem,
    new_quantity: Decimal,
    tx_type: TransactionType,
    context: TransactionContext,
) -> AdjustmentResult:
    previous_quantity = item.quantity
    item.quantity = new_quantity
    update_fields = ["quantity", "updated_at"]
    if tx_type == TransactionType.RESTOCK:
        item.last_restocked = datetime.now(timezone.utc)
        update_fields.append("last_restocked")
    if context.unit_cost is not None and tx_type == TransactionType.RESTOCK:
        item.cost_per_unit = context.unit_cost
        update_fields.append("cost_per_unit")
    await item.save(update_fields=update_fields, using_db=conn)

    transaction = await record(item, tx_type, previous_quantity, new_quantity, context, conn=conn)

    notification = None
    if new_quantity < previous_quantity:
        notification = await reorder.evaluate(item, conn=conn)
    return AdjustmentResult(item=item, transaction=transaction, notification=notification)


async def adjust_quantity(
    item_id: UUID,
    delta: Decimal,
    tx_type: TransactionType,
    context: Optional[TransactionContext] = None,
    conn: Any = None,
    include_inactive: bool = False,
) -> AdjustmentResult:
    """
    Applies a signed change to an item's quantity.

    Restock deltas must be positive, usage/waste deltas negative. Raises InsufficientStock
    (before writing anything) if the result would be negative. Pass `conn` to run inside
    the caller's database transaction; otherwise a new one is opened.
    """
    delta = Decimal(delta)
    _check_sign(delta, tx_type)
    context = context or TransactionContext()

    async def _run(connection):
        item = await _lock_item(item_id, connection, include_inactive=include_inactive)
        new_quantity = item.quantity + delta
        if new_quantity < 0:
            raise InsufficientStock(item.id, item.name, available=item.quantity, requested=-delta)
        return await _apply(connection, item, new_quantity, tx_type, context)

    if conn is not None:
        return await _run(conn)
    async with in_transaction() as new_conn:
        return await _run(new_conn)


async def set_quantity(
    item_id: UUID,
    new_quantity: Decimal,
    context: Optional[TransactionContext] = None,
    conn: Any = None,
) -> AdjustmentResult:
    """Adjustment transaction: sets the quantity directly (stock counts, manual corrections)."""
    new_quantity = Decimal(new_quantity)
    if new_quantity < 0:
        raise ValidationError("Quantity cannot be negative.", details={"quantity": str(new_quantity)})
    context = context or TransactionContext()

    async def _run(connection):
        item = await _lock_item(item_id, connection)
        return await _apply(connection, item, new_quantity, TransactionType.ADJUSTMENT, context)

    if conn is not None:
        return await _run(conn)
    async with in_transaction() as new_conn:
        return await _run(new_conn)


async def check_available(item_id: UUID, quantity: Decimal, conn: Any) -> InventoryItem:
    """Locks the item and raises InsufficientStock if fewer than `quantity` units are on hand. Writes nothing."""
    item = await _lock_item(item_id, conn)
    if item.quantity < quantity:
        raise InsufficientStock(item.id, item.name, available=item.quantity, requested=quantity)
    return item


async def _validate_supplier(supplier_id: Optional[UUID], conn: Any = None):
    if supplier_id is None:
        return
    exists = await Supplier.filter(id=supplier_id).using_db(conn).exists()
    if not exists:
        raise ValidationError(f"Supplier {supplier_id} not found.", details={"supplier_id": str(supplier_id)})


async def create_item(data: Dict[str, Any], performed_by: str = "System") -> InventoryItem:
    """Creates an item; a non-zero opening quantity is recorded as a restock from zero."""
    opening_quantity = Decimal(data.pop("quantity", 0) or 0)
    if opening_quantity < 0:
        raise ValidationError("Quantity cannot be negative.", details={"quantity": str(opening_quantity)})

    async with in_transaction() as conn:
        await _validate_supplier(data.get("supplier_id"), conn)
        item = await InventoryItem.create(quantity=Decimal("0"), using_db=conn, **data)
        if opening_quantity > 0:
            await _apply(
                conn,
                item,
                opening_quantity,
                TransactionType.RESTOCK,
                TransactionContext(performed_by=performed_by, notes="Initial inventory creation"),
            )
        # Opening stock may already sit at or below the threshold
        if item.auto_reorder_notify:
            await reorder.evaluate(item, conn=conn)
    log.info(f"Inventory item '{item.name}' created with {opening_quantity} {item.unit}.")
    return item


async def update_item(item_id: UUID, data: Dict[str, Any], performed_by: str = "Admin") -> InventoryItem:
    """Updates descriptive fields; a changed quantity is recorded as an adjustment."""
    new_quantity = data.pop("quantity", None)

    async with in_transaction() as conn:
        item = await _lock_item(item_id, conn)
        if "supplier_id" in data:
            await _validate_supplier(data["supplier_id"], conn)
        if data:
            for field, value in data.items():
                setattr(item, field, value)
            await item.save(update_fields=list(data.keys()) + ["updated_at"], using_db=conn)

        if new_quantity is not None and Decimal(new_quantity) != item.quantity:
            result = await set_quantity(
                item.id,
                new_quantity,
                TransactionContext(performed_by=performed_by, notes="Manual update via inventory management"),
                conn=conn,
            )
            item = result.item
        elif data and item.auto_reorder_notify:
            # Threshold settings may have moved above the current stock
            await reorder.evaluate(item, conn=conn)
    return item


async def deactivate_item(item_id: UUID) -> None:
    """Soft delete; the item's transaction history stays intact."""
    updated = await InventoryItem.filter(id=item_id, is_active=True).update(is_active=False)
    if not updated:
        raise NotFound(f"Inventory item {item_id} not found.")
    log.info(f"Inventory item {item_id} deactivated.")
