"""Reorder Notifier: raises and tracks low-stock reorder notifications."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.exceptions import InvalidStateTransition, NotFound
from cafe_core.models.inventory import InventoryItem, TransactionType
from cafe_core.models.reorder import ReorderNotification, ReorderStatus

log = logging.getLogger("reorder_notifier")

# Staff-driven transitions; RECEIVED and CANCELLED are terminal.
ALLOWED_TRANSITIONS = {
    ReorderStatus.PENDING: {ReorderStatus.ORDERED, ReorderStatus.CANCELLED},
    ReorderStatus.ORDERED: {ReorderStatus.RECEIVED},
    ReorderStatus.RECEIVED: set(),
    ReorderStatus.CANCELLED: set(),
}


def quantity_needed_for(item: InventoryItem) -> Decimal:
    if item.auto_reorder_quantity is not None and item.auto_reorder_quantity > 0:
        return item.auto_reorder_quantity
    return max(item.reorder_point - item.quantity, Decimal("0"))


async def evaluate(item: InventoryItem, conn: Any = None) -> Optional[ReorderNotification]:
    """
    Checks an item (already holding its new quantity) against its reorder threshold.

    Creates a pending notification on the first crossing and refreshes the existing
    pending one afterwards. The caller holds the item's row lock, so two concurrent
    evaluations of the same item cannot both miss the pending record.
    """
    if not item.auto_reorder_notify:
        return None

    threshold = item.effective_reorder_threshold
    if item.quantity > threshold:
        return None

    needed = quantity_needed_for(item)
    pending = await ReorderNotification.filter(
        inventory_item_id=item.id, status=ReorderStatus.PENDING
    ).using_db(conn).select_for_update().first()

    if pending:
        pending.current_quantity = item.quantity
        pending.quantity_needed = needed
        await pending.save(update_fields=["current_quantity", "quantity_needed", "updated_at"], using_db=conn)
        log.info(f"Refreshed pending reorder {pending.id} for '{item.name}' (qty {item.quantity}).")
        return pending

    notification = await ReorderNotification.create(
        inventory_item_id=item.id,
        quantity_needed=needed,
        current_quantity=item.quantity,
        reorder_point=item.reorder_point,
        auto_reorder_threshold=threshold,
        supplier_id=item.supplier_id,
        status=ReorderStatus.PENDING,
        using_db=conn,
    )
    log.warning(
        f"LOW STOCK: '{item.name}' at {item.quantity} {item.unit} (threshold {threshold}). "
        f"Reorder {notification.id} raised for {needed}."
    )
    return notification


async def list_notifications(status: Optional[ReorderStatus] = None) -> List[ReorderNotification]:
    query = ReorderNotification.all()
    if status:
        query = query.filter(status=status)
    return await query.order_by("-notified_at")


async def get_notification(notification_id: UUID) -> ReorderNotification:
    notification = await ReorderNotification.get_or_none(id=notification_id)
    if not notification:
        raise NotFound(f"Reorder notification {notification_id} not found.")
    return notification


async def update_status(
    notification_id: UUID,
    new_status: ReorderStatus,
    notes: Optional[str] = None,
    order_reference: Optional[str] = None,
    performed_by: str = "Staff",
) -> ReorderNotification:
    """
    Moves a notification through pending -> ordered -> received, or pending -> cancelled.
    Receiving restocks the item by quantity_needed in the same database transaction.
    """
    # Imported here: the ledger calls back into this module after every decrease.
    from cafe_core.services import ledger
    from cafe_core.services.transactions import TransactionContext

    async with in_transaction() as conn:
        notification = await ReorderNotification.filter(id=notification_id).using_db(conn).select_for_update().first()
        if not notification:
            raise NotFound(f"Reorder notification {notification_id} not found.")

        if new_status not in ALLOWED_TRANSITIONS[notification.status]:
            raise InvalidStateTransition(
                f"Cannot move reorder notification from {notification.status.value} to {new_status.value}.",
                details={"current": notification.status.value, "requested": new_status.value},
            )

        now = datetime.now(timezone.utc)
        update_fields = ["status", "updated_at"]
        notification.status = new_status
        if new_status == ReorderStatus.ORDERED:
            notification.ordered_at = now
            update_fields.append("ordered_at")
        elif new_status == ReorderStatus.RECEIVED:
            notification.received_at = now
            update_fields.append("received_at")
        elif new_status == ReorderStatus.CANCELLED:
            notification.cancelled_at = now
            update_fields.append("cancelled_at")

        if notes is not None:
            notification.notes = notes
            update_fields.append("notes")
        if order_reference is not None:
            notification.order_reference = order_reference
            update_fields.append("order_reference")

        await notification.save(update_fields=update_fields, using_db=conn)

        if new_status == ReorderStatus.RECEIVED and notification.quantity_needed > 0:
            await ledger.adjust_quantity(
                notification.inventory_item_id,
                notification.quantity_needed,
                TransactionType.RESTOCK,
                TransactionContext(
                    performed_by=performed_by,
                    notes=f"Reorder received: {notification.order_reference or notification.id}",
                ),
                conn=conn,
                include_inactive=True,
            )
        log.info(f"Reorder {notification.id} moved to {new_status.value}.")

    return notification
