from enum import Enum
from tortoise import fields, models
import uuid


class BatchStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BatchInventoryUpdate(models.Model):
    """
    A named group of restocks staged by staff and committed together.
    `items` holds [{"inventory_item_id": str, "quantity": str, "cost_per_unit": str | None}].
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    items = fields.JSONField()
    notes = fields.TextField(null=True)
    performed_by = fields.CharField(max_length=128)
    status = fields.CharEnumField(BatchStatus, default=BatchStatus.PENDING)
    completed_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "batch_inventory_updates"
        indexes = [
            ("status",),
            ("created_at",),
        ]
