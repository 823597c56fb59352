"""Transaction Recorder: the append-only audit trail of inventory quantity changes."""
import math
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from cafe_core.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from cafe_core.core.exceptions import ValidationError
from cafe_core.models.inventory import InventoryItem, InventoryTransaction, TransactionType


@dataclass
class TransactionContext:
    """Who/what caused a quantity change. Copied onto the transaction record."""
    performed_by: str = "System"
    notes: Optional[str] = None
    batch_id: Optional[UUID] = None
    menu_item_id: Optional[UUID] = None
    order_id: Optional[UUID] = None
    unit_cost: Optional[Decimal] = None # Overrides the item's cost_per_unit


async def record(
    item: InventoryItem,
    tx_type: TransactionType,
    previous_quantity: Decimal,
    new_quantity: Decimal,
    context: TransactionContext,
    conn: Any = None,
) -> InventoryTransaction:
    """
    Persists one immutable transaction record.

    Must be called with the same connection (transaction) that writes the item's new
    quantity, so the pair commits or rolls back together.
    """
    quantity = abs(new_quantity - previous_quantity)
    unit_cost = context.unit_cost if context.unit_cost is not None else item.cost_per_unit
    return await InventoryTransaction.create(
        inventory_item_id=item.id,
        type=tx_type,
        quantity=quantity,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        unit_cost=unit_cost,
        total_cost=quantity * unit_cost,
        notes=context.notes,
        performed_by=context.performed_by,
        batch_id=context.batch_id,
        menu_item_id=context.menu_item_id,
        order_id=context.order_id,
        using_db=conn,
    )


def _date_bounds(start_date: Optional[date], end_date: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    start = datetime.combine(start_date, time.min) if start_date else None
    # The end date is inclusive up to the last microsecond of that day
    end = datetime.combine(end_date, time.max) if end_date else None
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date.", details={"start_date": str(start_date), "end_date": str(end_date)})
    return start, end


async def list_transactions(
    item_id: Optional[UUID] = None,
    tx_type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[InventoryTransaction], Dict[str, int]]:
    """Returns one page of transactions (newest first) and pagination metadata."""
    if page < 1:
        raise ValidationError("page must be >= 1.", details={"page": page})
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}.", details={"limit": limit})

    query = InventoryTransaction.all()
    if item_id:
        query = query.filter(inventory_item_id=item_id)
    if tx_type:
        query = query.filter(type=tx_type)

    start, end = _date_bounds(start_date, end_date)
    if start:
        query = query.filter(created_at__gte=start)
    if end:
        query = query.filter(created_at__lte=end)

    total = await query.count()
    transactions = await query.order_by("-created_at").offset((page - 1) * limit).limit(limit)

    pagination = {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }
    return transactions, pagination
