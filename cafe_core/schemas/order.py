from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
import uuid
from datetime import datetime
from decimal import Decimal

from cafe_core.models.order import OrderStatus


class AddOnSelection(BaseModel):
    """An add-on picked for an order line; inventory-linked add-ons are consumed like ingredients."""
    name: str
    price: Decimal = Field(Decimal("0"), ge=0)
    inventory_item_id: Optional[uuid.UUID] = None
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit: Optional[str] = None


class OrderItemRequest(BaseModel):
    """Schema for a single item in the order request."""
    menu_item_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    selected_add_ons: List[AddOnSelection] = Field(default_factory=list)


class OrderRequest(BaseModel):
    """Schema for the full order placement request body."""
    customer_name: str = Field(..., min_length=1)
    table_id: Optional[str] = None
    items: List[OrderItemRequest]
    notes: Optional[str] = None


class OrderPlacementResponse(BaseModel):
    """Response schema for a newly placed order."""
    order_id: uuid.UUID
    status: OrderStatus
    total_amount: Decimal
    message: str
    inventory: List[Dict[str, Any]] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status."""
    status: OrderStatus


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    name: str
    quantity: int
    price: str  # Use string for Decimal type serialization


class OrderDetailResponse(BaseModel):
    """Schema for fetching detailed order information."""
    id: uuid.UUID
    customer_name: str
    table_id: Optional[str] = None
    status: OrderStatus
    total_amount: Decimal
    items: List[OrderItemResponse]
    created_at: str


class IngredientRequest(BaseModel):
    inventory_item_id: uuid.UUID
    quantity: Decimal = Field(..., gt=0, description="Amount consumed by one serving.")
    unit: str


class MenuItemRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the menu item (e.g., Cafe Latte).")
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, description="Selling price of the item.")
    category: str = Field(..., min_length=1)
    is_available: bool = Field(True, description="Whether the menu item can be ordered.")
    ingredients: List[IngredientRequest] = Field(default_factory=list)


class IngredientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    inventory_item_id: uuid.UUID
    quantity: Decimal
    unit: str


class MenuItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    category: str
    is_available: bool
    ingredients: List[IngredientResponse]

    @classmethod
    def from_model(cls, menu_item) -> "MenuItemResponse":
        return cls(
            id=menu_item.id,
            name=menu_item.name,
            description=menu_item.description,
            price=menu_item.price,
            category=menu_item.category,
            is_available=menu_item.is_available,
            ingredients=[IngredientResponse.model_validate(i) for i in menu_item.ingredients],
        )
