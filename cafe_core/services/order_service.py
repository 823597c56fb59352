import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.exceptions import InvalidStateTransition, NotFound, ValidationError
from cafe_core.models.order import MenuItem, Order, OrderItem, OrderStatus
from cafe_core.services import order_bridge
from cafe_core.services.order_bridge import ConsumptionOutcome

log = logging.getLogger("order_service")

FINAL_STATES = [OrderStatus.COMPLETED, OrderStatus.CANCELLED]


async def place_order(
    customer_name: str,
    items: List[Dict[str, Any]],
    table_id: Optional[str] = None,
    notes: Optional[str] = None,
    policy: Optional[str] = None,
) -> Tuple[Order, List[ConsumptionOutcome]]:
    """
    Persists the order and its lines and consumes the recipe ingredients, all in one
    database transaction. A shortage under the strict policy rolls back the whole order.

    `items` is [{"menu_item_id": UUID, "quantity": int, "selected_add_ons": [...]}].
    """
    if not items:
        raise ValidationError("Order must contain items.", details={"items": "At least one item is required"})

    async with in_transaction() as conn:
        menu_item_ids = {it["menu_item_id"] for it in items}
        menu_items = await MenuItem.filter(id__in=list(menu_item_ids), is_available=True).using_db(conn).prefetch_related("ingredients")
        menu_map = {m.id: m for m in menu_items}

        missing = [str(mid) for mid in menu_item_ids if mid not in menu_map]
        if missing:
            raise ValidationError("Some menu items do not exist or are unavailable.", details={"missing_ids": sorted(missing)})

        # 1. Create the Order header
        order = await Order.create(
            customer_name=customer_name,
            table_id=table_id,
            status=OrderStatus.PENDING,
            total_amount=Decimal("0"),
            notes=notes,
            using_db=conn,
        )

        total = Decimal("0")
        lines = []
        for it in items:
            menu = menu_map[it["menu_item_id"]]
            qty = int(it["quantity"])
            add_ons = it.get("selected_add_ons") or []
            add_on_price = sum((Decimal(str(a.get("price", 0))) for a in add_ons), Decimal("0"))

            unit_price = menu.price + add_on_price
            line_total = unit_price * qty
            total += line_total

            # 2. Create Order Item line
            await OrderItem.create(
                order=order,
                menu_item=menu,
                quantity=qty,
                unit_price=unit_price,
                line_total=line_total,
                selected_add_ons=add_ons,
                using_db=conn,
            )
            lines.append({"menu_item": menu, "quantity": qty, "selected_add_ons": add_ons})

        order.total_amount = total
        await order.save(update_fields=["total_amount", "updated_at"], using_db=conn)

        # 3. Consume inventory inside the same transaction as the order
        requirements = order_bridge.build_requirements(lines)
        outcomes = await order_bridge.consume(requirements, order_id=order.id, policy=policy, conn=conn)

    skipped = [o for o in outcomes if not o.consumed]
    if skipped:
        log.warning(f"Order {order.id} placed with {len(skipped)} ingredient(s) not deducted from inventory.")
    log.info(f"Order {order.id} placed for {customer_name}: total {order.total_amount}.")
    return order, outcomes


async def get_order_by_id(order_id: UUID) -> Order:
    """Fetches order details with items, including the menu item name/price."""
    # Pre-fetch related entities to minimize DB queries (N+1 avoidance)
    order = await Order.get_or_none(id=order_id).prefetch_related('items', 'items__menu_item')
    if not order:
        raise NotFound(f"Order {order_id} not found.")
    return order


async def update_order_status(order_id: UUID, new_status: OrderStatus) -> Order:
    """Updates order status; completed and cancelled orders are final."""
    async with in_transaction() as conn:
        # Row lock: a concurrent update waits here, then sees the final state we commit
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()

        if not order:
            raise NotFound(f"Order {order_id} not found.")

        # Block status updates if the order is in a final, irreversible state.
        if order.status in FINAL_STATES:
            raise InvalidStateTransition(
                f"Order is already in a final state: {order.status.value}. Status cannot be updated."
            )

        order.status = new_status
        await order.save(using_db=conn)
        log.info(f"Order {order_id} moved to {new_status.value}.")

    return order
