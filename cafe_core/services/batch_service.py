import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from cafe_core.core.exceptions import InvalidStateTransition, NotFound, ValidationError
from cafe_core.models.batch import BatchInventoryUpdate, BatchStatus
from cafe_core.models.inventory import TransactionType
from cafe_core.services import ledger
from cafe_core.services.transactions import TransactionContext

log = logging.getLogger("batch_service")


async def _apply_batch(batch: BatchInventoryUpdate, conn: Any) -> None:
    """Replays every line as a restock. Any failure aborts the caller's transaction."""
    for line in batch.items:
        cost = line.get("cost_per_unit")
        await ledger.adjust_quantity(
            UUID(line["inventory_item_id"]),
            Decimal(line["quantity"]),
            TransactionType.RESTOCK,
            TransactionContext(
                performed_by=batch.performed_by,
                notes=f"Batch update: {batch.name}",
                batch_id=batch.id,
                unit_cost=Decimal(cost) if cost is not None else None,
            ),
            conn=conn,
        )


async def create_batch(
    name: str,
    items: List[Dict[str, Any]],
    performed_by: str,
    notes: Optional[str] = None,
    execute_immediately: bool = False,
) -> BatchInventoryUpdate:
    """`items` is [{"inventory_item_id": str, "quantity": str, "cost_per_unit": str | None}]."""
    if not items:
        raise ValidationError("A batch needs at least one item.", details={"items": "At least one item is required"})

    async with in_transaction() as conn:
        batch = await BatchInventoryUpdate.create(
            name=name,
            items=items,
            notes=notes,
            performed_by=performed_by,
            status=BatchStatus.COMPLETED if execute_immediately else BatchStatus.PENDING,
            completed_at=datetime.now(timezone.utc) if execute_immediately else None,
            using_db=conn,
        )
        if execute_immediately:
            await _apply_batch(batch, conn)
    log.info(f"Batch '{name}' ({batch.id}) created as {batch.status.value} with {len(items)} item(s).")
    return batch


async def list_batches(
    status: Optional[BatchStatus] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[BatchInventoryUpdate], Dict[str, int]]:
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError("Invalid pagination parameters.", details={"page": page, "limit": limit})
    query = BatchInventoryUpdate.all()
    if status:
        query = query.filter(status=status)
    total = await query.count()
    batches = await query.order_by("-created_at").offset((page - 1) * limit).limit(limit)
    return batches, {"total": total, "page": page, "limit": limit, "pages": math.ceil(total / limit)}


async def _process(batch_id: UUID, action: str) -> BatchInventoryUpdate:
    async with in_transaction() as conn:
        # Locking the batch row serializes concurrent execute/cancel calls
        batch = await BatchInventoryUpdate.filter(id=batch_id).using_db(conn).select_for_update().first()
        if not batch:
            raise NotFound(f"Batch update {batch_id} not found.")
        if batch.status != BatchStatus.PENDING:
            raise InvalidStateTransition(
                "Can only process pending batches.",
                details={"status": batch.status.value},
            )

        if action == "execute":
            batch.status = BatchStatus.COMPLETED
            batch.completed_at = datetime.now(timezone.utc)
            await batch.save(update_fields=["status", "completed_at", "updated_at"], using_db=conn)
            await _apply_batch(batch, conn)
        else:
            batch.status = BatchStatus.CANCELLED
            await batch.save(update_fields=["status", "updated_at"], using_db=conn)
    log.info(f"Batch {batch_id} {batch.status.value}.")
    return batch


async def execute_batch(batch_id: UUID) -> BatchInventoryUpdate:
    return await _process(batch_id, "execute")


async def cancel_batch(batch_id: UUID) -> BatchInventoryUpdate:
    return await _process(batch_id, "cancel")
