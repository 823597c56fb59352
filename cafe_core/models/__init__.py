# cafe_core/models/__init__.py
from .inventory import InventoryItem, InventoryTransaction, Supplier, TransactionType
from .reorder import ReorderNotification, ReorderStatus
from .batch import BatchInventoryUpdate, BatchStatus
from .order import MenuItem, MenuIngredient, Order, OrderItem, OrderStatus

# Export all models
__all__ = [
    "BatchInventoryUpdate",
    "BatchStatus",
    "InventoryItem",
    "InventoryTransaction",
    "MenuIngredient",
    "MenuItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ReorderNotification",
    "ReorderStatus",
    "Supplier",
    "TransactionType",
]
