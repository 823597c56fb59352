import logging
from fastapi import APIRouter, status
from cafe_core.core.db import with_db_retry
from cafe_core.core.exceptions import InsufficientStock
from cafe_core.schemas.response import SuccessResponse
from cafe_core.services.order_service import place_order, get_order_by_id, update_order_status
from cafe_core.schemas.order import OrderRequest, OrderPlacementResponse, OrderStatusUpdate, OrderDetailResponse
from uuid import UUID

router = APIRouter()
log = logging.getLogger("uvicorn")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(request_data: OrderRequest):
    """
    Places a new order. Ingredient stock is consumed synchronously before responding;
    the `inventory` list reports what was deducted (or skipped under the lenient policy).
    """
    items_data = [
        {
            "menu_item_id": item.menu_item_id,
            "quantity": item.quantity,
            "selected_add_ons": [a.model_dump(mode="json") for a in item.selected_add_ons],
        }
        for item in request_data.items
    ]

    try:
        order, outcomes = await with_db_retry(
            lambda: place_order(
                customer_name=request_data.customer_name,
                items=items_data,
                table_id=request_data.table_id,
                notes=request_data.notes,
            )
        )
    except InsufficientStock as e:
        log.warning(f"Order for {request_data.customer_name} rejected: {e.message}")
        raise

    data = OrderPlacementResponse(
        order_id=order.id,
        status=order.status,
        total_amount=order.total_amount,
        message="Order placed successfully",
        inventory=[o.as_dict() for o in outcomes],
    ).model_dump()
    return SuccessResponse(data=data)


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: UUID):
    """Fetches details for a specific order."""
    order = await with_db_retry(lambda: get_order_by_id(order_id))

    # Prepare items data for clean output using the response schema
    items = [
        {
            "name": i.menu_item.name,
            "quantity": i.quantity,
            "price": str(i.unit_price)
        }
        for i in order.items
    ]

    data = OrderDetailResponse(
        id=order.id,
        customer_name=order.customer_name,
        table_id=order.table_id,
        status=order.status,
        total_amount=order.total_amount,
        items=items,
        created_at=str(order.created_at)
    ).model_dump()
    return SuccessResponse(data=data)


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(order_id: UUID, payload: OrderStatusUpdate):
    """
    Updates status (e.g. 'preparing', 'ready', 'completed', 'cancelled').
    """
    order = await with_db_retry(lambda: update_order_status(order_id, payload.status))
    data = OrderPlacementResponse(
        order_id=order.id,
        status=order.status,
        total_amount=order.total_amount,
        message=f"Order status successfully updated to {order.status.value}"
    ).model_dump()
    return SuccessResponse(data=data)
