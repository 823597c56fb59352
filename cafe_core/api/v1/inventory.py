import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from cafe_core.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from cafe_core.core.db import with_db_retry
from cafe_core.models.batch import BatchStatus
from cafe_core.models.inventory import TransactionType
from cafe_core.models.reorder import ReorderStatus
from cafe_core.schemas.inventory import (
    BatchAction,
    BatchActionRequest,
    BatchRequest,
    BatchResponse,
    InventoryItemRequest,
    InventoryItemResponse,
    InventoryItemUpdate,
    NotificationResponse,
    NotificationUpdate,
    Pagination,
    SupplierRequest,
    SupplierResponse,
    SupplierUpdate,
    TransactionRequest,
    TransactionResponse,
)
from cafe_core.schemas.response import SuccessResponse
from cafe_core.services import batch_service, catalog, ledger, reorder, transactions
from cafe_core.services.transactions import TransactionContext

log = logging.getLogger("uvicorn")

router = APIRouter()


def _item(item) -> dict:
    return InventoryItemResponse.model_validate(item).model_dump()


# ----------- Items -----------

@router.get("/items", response_model=SuccessResponse)
async def list_inventory_items(
    category: Optional[str] = None,
    low_stock: bool = False,
    auto_reorder_only: bool = False,
):
    """Lists active items, optionally for one category ("All" for every category)."""
    items = await with_db_retry(
        lambda: ledger.list_items(category=category, low_stock=low_stock, auto_reorder_only=auto_reorder_only)
    )
    return SuccessResponse(data={"items": [_item(i) for i in items]})


@router.get("/items/{item_id}", response_model=SuccessResponse)
async def get_inventory_item(item_id: UUID):
    item = await with_db_retry(lambda: ledger.get_item(item_id))
    return SuccessResponse(data=_item(item))


@router.post("/items", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_inventory_item(payload: InventoryItemRequest):
    """Creates an item; its opening quantity is recorded as the first restock."""
    item = await with_db_retry(lambda: ledger.create_item(payload.model_dump()))
    return SuccessResponse(data=_item(item))


@router.put("/items/{item_id}", response_model=SuccessResponse)
async def update_inventory_item(item_id: UUID, payload: InventoryItemUpdate):
    item = await with_db_retry(lambda: ledger.update_item(item_id, payload.model_dump(exclude_unset=True)))
    return SuccessResponse(data=_item(item))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item(item_id: UUID):
    """Soft delete: the item disappears from listings but keeps its history."""
    await with_db_retry(lambda: ledger.deactivate_item(item_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/categories", response_model=SuccessResponse)
async def list_inventory_categories():
    categories = await with_db_retry(catalog.list_inventory_categories)
    return SuccessResponse(data={"categories": categories})


# ----------- Transactions -----------

@router.post("/transactions", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_transaction(payload: TransactionRequest):
    """
    Records a manual restock, usage, waste or adjustment and returns the updated item
    together with its transaction record.
    """
    context = TransactionContext(
        performed_by=payload.performed_by,
        notes=payload.notes,
        unit_cost=payload.unit_cost,
    )
    if payload.type == TransactionType.ADJUSTMENT:
        result = await with_db_retry(
            lambda: ledger.set_quantity(payload.inventory_item_id, payload.quantity, context)
        )
    else:
        delta = payload.quantity if payload.type == TransactionType.RESTOCK else -payload.quantity
        result = await with_db_retry(
            lambda: ledger.adjust_quantity(payload.inventory_item_id, delta, payload.type, context)
        )

    log.info(f"{payload.type.value} of {payload.quantity} recorded for item {payload.inventory_item_id} by {payload.performed_by}.")
    data = {
        "item": _item(result.item),
        "transaction": TransactionResponse.model_validate(result.transaction).model_dump(),
        "notification": NotificationResponse.model_validate(result.notification).model_dump() if result.notification else None,
    }
    return SuccessResponse(data=data)


@router.get("/transactions", response_model=SuccessResponse)
async def list_inventory_transactions(
    item_id: Optional[UUID] = None,
    type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    records, pagination = await with_db_retry(
        lambda: transactions.list_transactions(
            item_id=item_id, tx_type=type, start_date=start_date, end_date=end_date, page=page, limit=limit
        )
    )
    return SuccessResponse(data={
        "transactions": [TransactionResponse.model_validate(t).model_dump() for t in records],
        "pagination": Pagination(**pagination).model_dump(),
    })


# ----------- Reorder notifications -----------

@router.get("/notifications", response_model=SuccessResponse)
async def list_reorder_notifications(status: Optional[ReorderStatus] = None):
    notifications = await with_db_retry(lambda: reorder.list_notifications(status))
    return SuccessResponse(data={
        "notifications": [NotificationResponse.model_validate(n).model_dump() for n in notifications]
    })


@router.put("/notifications/{notification_id}", response_model=SuccessResponse)
async def update_reorder_notification(notification_id: UUID, payload: NotificationUpdate):
    """Staff moves a notification to ordered, received (restocks the item) or cancelled."""
    notification = await with_db_retry(
        lambda: reorder.update_status(
            notification_id,
            payload.status,
            notes=payload.notes,
            order_reference=payload.order_reference,
            performed_by=payload.performed_by,
        )
    )
    return SuccessResponse(data=NotificationResponse.model_validate(notification).model_dump())


# ----------- Batch updates -----------

@router.get("/batches", response_model=SuccessResponse)
async def list_batch_updates(
    status: Optional[BatchStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    batches, pagination = await with_db_retry(lambda: batch_service.list_batches(status, page, limit))
    return SuccessResponse(data={
        "batches": [BatchResponse.model_validate(b).model_dump() for b in batches],
        "pagination": Pagination(**pagination).model_dump(),
    })


@router.post("/batches", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_batch_update(payload: BatchRequest):
    items = [line.model_dump(mode="json") for line in payload.items]
    batch = await with_db_retry(
        lambda: batch_service.create_batch(
            payload.name,
            items,
            performed_by=payload.performed_by,
            notes=payload.notes,
            execute_immediately=payload.execute_immediately,
        )
    )
    return SuccessResponse(data=BatchResponse.model_validate(batch).model_dump())


@router.put("/batches/{batch_id}", response_model=SuccessResponse)
async def process_batch_update(batch_id: UUID, payload: BatchActionRequest):
    """Executes (restocks every line) or cancels a pending batch."""
    if payload.action == BatchAction.EXECUTE:
        batch = await with_db_retry(lambda: batch_service.execute_batch(batch_id))
    else:
        batch = await with_db_retry(lambda: batch_service.cancel_batch(batch_id))
    return SuccessResponse(data=BatchResponse.model_validate(batch).model_dump())


# ----------- Suppliers -----------

@router.get("/suppliers", response_model=SuccessResponse)
async def list_suppliers(active_only: bool = False):
    suppliers = await with_db_retry(lambda: catalog.list_suppliers(active_only))
    return SuccessResponse(data={"suppliers": [SupplierResponse.model_validate(s).model_dump() for s in suppliers]})


@router.post("/suppliers", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_supplier(payload: SupplierRequest):
    supplier = await with_db_retry(lambda: catalog.create_supplier(payload.model_dump()))
    return SuccessResponse(data=SupplierResponse.model_validate(supplier).model_dump())


@router.put("/suppliers/{supplier_id}", response_model=SuccessResponse)
async def update_supplier(supplier_id: UUID, payload: SupplierUpdate):
    supplier = await with_db_retry(lambda: catalog.update_supplier(supplier_id, payload.model_dump(exclude_unset=True)))
    return SuccessResponse(data=SupplierResponse.model_validate(supplier).model_dump())


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_supplier(supplier_id: UUID):
    await with_db_retry(lambda: catalog.deactivate_supplier(supplier_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
