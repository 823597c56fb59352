from enum import Enum
from tortoise import fields, models
import uuid


class ReorderStatus(str, Enum):
    PENDING = "pending"   # Raised by the notifier, waiting for staff
    ORDERED = "ordered"   # Staff placed the order with the supplier
    RECEIVED = "received" # Goods arrived and were restocked (terminal)
    CANCELLED = "cancelled" # Terminal


class ReorderNotification(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    inventory_item = fields.ForeignKeyField("models.InventoryItem", related_name="reorder_notifications")
    quantity_needed = fields.DecimalField(max_digits=14, decimal_places=3)
    current_quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    # Snapshots of the item settings at trigger time
    reorder_point = fields.DecimalField(max_digits=14, decimal_places=3)
    auto_reorder_threshold = fields.DecimalField(max_digits=14, decimal_places=3)
    supplier = fields.ForeignKeyField("models.Supplier", related_name="reorder_notifications", null=True)
    status = fields.CharEnumField(ReorderStatus, default=ReorderStatus.PENDING)
    notified_at = fields.DatetimeField(auto_now_add=True)
    ordered_at = fields.DatetimeField(null=True)
    received_at = fields.DatetimeField(null=True)
    cancelled_at = fields.DatetimeField(null=True)
    order_reference = fields.CharField(max_length=128, null=True)
    notes = fields.TextField(null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "reorder_notifications"
        indexes = [
            ("status",),
            ("inventory_item_id", "status"), # Pending lookup per item
        ]
