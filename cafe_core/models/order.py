from enum import Enum
from tortoise import fields, models
import uuid


class OrderStatus(str, Enum):
    PENDING = "pending"  # Placed, inventory already consumed
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MenuItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    category = fields.CharField(max_length=64)
    is_available = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "menu_items"
        indexes = [
            ("category",),
            ("is_available",),
        ]


class MenuIngredient(models.Model):
    """One recipe line: how much of an inventory item a single serving consumes."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    menu_item = fields.ForeignKeyField("models.MenuItem", related_name="ingredients")
    inventory_item = fields.ForeignKeyField("models.InventoryItem", related_name="used_in")
    quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    unit = fields.CharField(max_length=32)

    class Meta:
        table = "menu_ingredients"
        indexes = [
            ("menu_item_id",),
        ]


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    customer_name = fields.CharField(max_length=255)
    table_id = fields.CharField(max_length=64, null=True)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    total_amount = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        indexes = [
            ("status",),                 # Status-based filtering
            ("table_id",),
            ("created_at",),             # Time-based queries
            ("status", "created_at"),    # Composite: status with time
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items")
    menu_item = fields.ForeignKeyField("models.MenuItem", related_name="order_items")
    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    line_total = fields.DecimalField(max_digits=14, decimal_places=2)
    # [{"name", "price", "inventory_item_id", "quantity"}], serialized as strings
    selected_add_ons = fields.JSONField(default=list)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("menu_item_id",),          # Menu item popularity
        ]
