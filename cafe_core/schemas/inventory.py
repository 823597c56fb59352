import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cafe_core.models.batch import BatchStatus
from cafe_core.models.inventory import TransactionType
from cafe_core.models.reorder import ReorderStatus


class InventoryItemRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the inventory item (e.g., Whole Milk).")
    category: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1, description="Unit of measure (e.g., litre, kg, piece).")
    quantity: Decimal = Field(Decimal("0"), ge=0, description="Opening stock quantity.")
    cost_per_unit: Decimal = Field(..., ge=0)
    reorder_point: Decimal = Field(..., ge=0, description="Quantity at or below which the item counts as low stock.")
    supplier_id: Optional[uuid.UUID] = None
    auto_reorder_notify: bool = False
    auto_reorder_threshold: Optional[Decimal] = Field(None, ge=0, description="Defaults to reorder_point when unset.")
    auto_reorder_quantity: Optional[Decimal] = Field(None, gt=0)
    sku: Optional[str] = None
    location: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    """Partial update: only the fields that were sent are applied."""
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = Field(None, min_length=1)
    quantity: Optional[Decimal] = Field(None, ge=0)
    cost_per_unit: Optional[Decimal] = Field(None, ge=0)
    reorder_point: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[uuid.UUID] = None
    auto_reorder_notify: Optional[bool] = None
    auto_reorder_threshold: Optional[Decimal] = Field(None, ge=0)
    auto_reorder_quantity: Optional[Decimal] = Field(None, gt=0)
    sku: Optional[str] = None
    location: Optional[str] = None

    @field_validator("name", "category", "unit", "cost_per_unit", "reorder_point", "auto_reorder_notify")
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; null is only accepted for the optional ones
        if value is None:
            raise ValueError("may not be null")
        return value


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    category: str
    unit: str
    quantity: Decimal
    cost_per_unit: Decimal
    reorder_point: Decimal
    supplier_id: Optional[uuid.UUID] = None
    auto_reorder_notify: bool
    auto_reorder_threshold: Optional[Decimal] = None
    auto_reorder_quantity: Optional[Decimal] = None
    sku: Optional[str] = None
    location: Optional[str] = None
    last_restocked: Optional[datetime] = None
    is_active: bool
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class TransactionRequest(BaseModel):
    """
    Manual inventory transaction. For restock/usage/waste `quantity` is the amount moved;
    for adjustment it is the new absolute quantity.
    """
    inventory_item_id: uuid.UUID
    type: TransactionType
    quantity: Decimal = Field(..., ge=0)
    notes: Optional[str] = None
    performed_by: str = Field(..., min_length=1)
    unit_cost: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_quantity(self):
        if self.type != TransactionType.ADJUSTMENT and self.quantity <= 0:
            raise ValueError("quantity must be greater than 0 for restock, usage and waste")
        return self


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    inventory_item_id: uuid.UUID
    type: TransactionType
    quantity: Decimal
    previous_quantity: Decimal
    new_quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    notes: Optional[str] = None
    performed_by: str
    batch_id: Optional[uuid.UUID] = None
    menu_item_id: Optional[uuid.UUID] = None
    order_id: Optional[uuid.UUID] = None
    created_at: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    inventory_item_id: uuid.UUID
    quantity_needed: Decimal
    current_quantity: Decimal
    reorder_point: Decimal
    auto_reorder_threshold: Decimal
    supplier_id: Optional[uuid.UUID] = None
    status: ReorderStatus
    notified_at: datetime
    ordered_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    order_reference: Optional[str] = None
    notes: Optional[str] = None


class NotificationUpdate(BaseModel):
    status: ReorderStatus
    notes: Optional[str] = None
    order_reference: Optional[str] = None
    performed_by: str = "Staff"


class BatchLine(BaseModel):
    inventory_item_id: uuid.UUID
    quantity: Decimal = Field(..., gt=0, description="Amount to restock.")
    cost_per_unit: Optional[Decimal] = Field(None, ge=0)


class BatchRequest(BaseModel):
    name: str = Field(..., min_length=1)
    items: List[BatchLine] = Field(..., min_length=1)
    notes: Optional[str] = None
    performed_by: str = Field(..., min_length=1)
    execute_immediately: bool = False


class BatchAction(str, Enum):
    EXECUTE = "execute"
    CANCEL = "cancel"


class BatchActionRequest(BaseModel):
    action: BatchAction


class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    items: List[BatchLine]
    notes: Optional[str] = None
    performed_by: str
    status: BatchStatus
    completed_at: Optional[datetime] = None
    created_at: datetime


class SupplierRequest(BaseModel):
    name: str = Field(..., min_length=1)
    contact_person: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    notes: Optional[str] = None
    is_active: bool = True


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "contact_person", "email", "phone", "address", "is_active")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class SupplierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    contact_person: str
    email: str
    phone: str
    address: str
    notes: Optional[str] = None
    is_active: bool
