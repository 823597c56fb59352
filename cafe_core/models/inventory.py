from enum import Enum
from tortoise import fields, models
import uuid


class TransactionType(str, Enum):
    RESTOCK = "restock"
    USAGE = "usage"
    ADJUSTMENT = "adjustment" # Sets the quantity directly
    WASTE = "waste"


class Supplier(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    contact_person = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255)
    phone = fields.CharField(max_length=64)
    address = fields.TextField()
    notes = fields.TextField(null=True)
    is_active = fields.BooleanField(default=True) # Suppliers are deactivated, never deleted
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "suppliers"
        indexes = [
            ("is_active",),
        ]


class InventoryItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    category = fields.CharField(max_length=64)
    unit = fields.CharField(max_length=32)
    quantity = fields.DecimalField(max_digits=14, decimal_places=3, default=0)
    cost_per_unit = fields.DecimalField(max_digits=12, decimal_places=2)
    reorder_point = fields.DecimalField(max_digits=14, decimal_places=3)
    supplier = fields.ForeignKeyField("models.Supplier", related_name="inventory_items", null=True)
    auto_reorder_notify = fields.BooleanField(default=False)
    auto_reorder_threshold = fields.DecimalField(max_digits=14, decimal_places=3, null=True) # Falls back to reorder_point
    auto_reorder_quantity = fields.DecimalField(max_digits=14, decimal_places=3, null=True)
    sku = fields.CharField(max_length=64, null=True)
    location = fields.CharField(max_length=128, null=True)
    last_restocked = fields.DatetimeField(null=True)
    # Soft delete: historical transactions keep pointing at the item
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "inventory_items"
        indexes = [
            ("category",),
            ("is_active",),
            ("is_active", "category"),
        ]

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_point

    @property
    def effective_reorder_threshold(self):
        if self.auto_reorder_threshold is not None:
            return self.auto_reorder_threshold
        return self.reorder_point


class InventoryTransaction(models.Model):
    """
    Immutable audit record of a single quantity change.
    `quantity` is the magnitude of the change; new_quantity - previous_quantity is the signed delta.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    inventory_item = fields.ForeignKeyField("models.InventoryItem", related_name="transactions")
    type = fields.CharEnumField(TransactionType)
    quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    previous_quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    new_quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = fields.DecimalField(max_digits=12, decimal_places=2)
    total_cost = fields.DecimalField(max_digits=16, decimal_places=2)
    notes = fields.TextField(null=True)
    performed_by = fields.CharField(max_length=128)
    batch_id = fields.UUIDField(null=True)
    menu_item_id = fields.UUIDField(null=True)
    order_id = fields.UUIDField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "inventory_transactions"
        indexes = [
            ("inventory_item_id",),
            ("type",),
            ("created_at",),
            ("inventory_item_id", "created_at"),
        ]

    @property
    def signed_delta(self):
        return self.new_quantity - self.previous_quantity
