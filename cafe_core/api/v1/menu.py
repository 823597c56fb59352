import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status

from cafe_core.core.db import with_db_retry
from cafe_core.schemas.order import MenuItemRequest, MenuItemResponse
from cafe_core.schemas.response import SuccessResponse
from cafe_core.services import catalog

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.get("/items", response_model=SuccessResponse)
async def list_menu_items(category: Optional[str] = None, available_only: bool = False):
    items = await with_db_retry(lambda: catalog.list_menu_items(category, available_only))
    return SuccessResponse(data={"items": [MenuItemResponse.from_model(m).model_dump() for m in items]})


@router.get("/items/{menu_item_id}", response_model=SuccessResponse)
async def get_menu_item(menu_item_id: UUID):
    menu_item = await with_db_retry(lambda: catalog.get_menu_item(menu_item_id))
    return SuccessResponse(data=MenuItemResponse.from_model(menu_item).model_dump())


@router.post("/items", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_menu_item(payload: MenuItemRequest):
    """Adds a menu item together with its recipe (the inventory each serving consumes)."""
    data = payload.model_dump(exclude={"ingredients"})
    ingredients = [ing.model_dump() for ing in payload.ingredients]
    menu_item = await with_db_retry(lambda: catalog.create_menu_item(data, ingredients))
    log.info(f"Menu item '{menu_item.name}' added with {len(ingredients)} ingredient(s).")
    return SuccessResponse(data=MenuItemResponse.from_model(menu_item).model_dump())
