"""Order-to-Inventory Bridge: turns an order's recipes into usage adjustments on the ledger."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from cafe_core.core.config import STOCK_SHORTAGE_POLICY
from cafe_core.core.exceptions import InsufficientStock, NotFound, OrderShortage, ValidationError
from cafe_core.models.inventory import TransactionType
from cafe_core.services import ledger
from cafe_core.services.transactions import TransactionContext

log = logging.getLogger("order_bridge")

STRICT = "strict"
LENIENT = "lenient"
POLICIES = (STRICT, LENIENT)


@dataclass
class IngredientRequirement:
    """Total amount of one inventory item an order needs, across all of its lines."""
    inventory_item_id: UUID
    quantity: Decimal
    menu_item_ids: List[UUID] = field(default_factory=list)
    menu_item_names: List[str] = field(default_factory=list)

    @property
    def menu_item_id(self) -> Optional[UUID]:
        # Only attributable when a single menu item drew on this ingredient
        return self.menu_item_ids[0] if len(self.menu_item_ids) == 1 else None


@dataclass
class ConsumptionOutcome:
    inventory_item_id: UUID
    requested: Decimal
    consumed: bool
    new_quantity: Optional[Decimal] = None
    menu_item_ids: List[UUID] = field(default_factory=list)
    reason: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "inventory_item_id": str(self.inventory_item_id),
            "menu_item_ids": [str(m) for m in self.menu_item_ids],
            "requested": str(self.requested),
            "consumed": self.consumed,
            "new_quantity": str(self.new_quantity) if self.new_quantity is not None else None,
            "reason": self.reason,
        }


def build_requirements(lines: Iterable[Dict[str, Any]]) -> List[IngredientRequirement]:
    """
    Expands order lines into one requirement per inventory item.

    Each line is {"menu_item": MenuItem with prefetched ingredients, "quantity": int,
    "selected_add_ons": [{"name", "inventory_item_id", "quantity", ...}]}. Amounts for
    the same inventory item are summed across recipes, add-ons and lines.
    """
    grouped: Dict[UUID, IngredientRequirement] = {}

    def add(item_id: UUID, quantity: Decimal, menu_item):
        req = grouped.get(item_id)
        if req is None:
            req = grouped[item_id] = IngredientRequirement(inventory_item_id=item_id, quantity=Decimal("0"))
        req.quantity += quantity
        if menu_item.id not in req.menu_item_ids:
            req.menu_item_ids.append(menu_item.id)
            req.menu_item_names.append(menu_item.name)

    for line in lines:
        menu_item = line["menu_item"]
        line_qty = int(line["quantity"])
        for ingredient in menu_item.ingredients:
            add(ingredient.inventory_item_id, ingredient.quantity * line_qty, menu_item)
        for add_on in line.get("selected_add_ons") or []:
            if add_on.get("inventory_item_id") and add_on.get("quantity"):
                add(UUID(str(add_on["inventory_item_id"])), Decimal(str(add_on["quantity"])) * line_qty, menu_item)
    return [req for req in grouped.values() if req.quantity > 0]


def _shortage_entry(req: IngredientRequirement, error: Exception) -> Dict[str, Any]:
    if isinstance(error, InsufficientStock):
        return {**error.details, "error": "Insufficient stock"}
    return {
        "inventory_item_id": str(req.inventory_item_id),
        "requested": str(req.quantity),
        "error": "Item not found in inventory",
    }


async def _check_all(requirements: List[IngredientRequirement], conn: Any) -> List[Dict[str, Any]]:
    shortages = []
    for req in requirements:
        try:
            await ledger.check_available(req.inventory_item_id, req.quantity, conn)
        except (InsufficientStock, NotFound) as e:
            shortages.append(_shortage_entry(req, e))
    return shortages


async def consume(
    requirements: List[IngredientRequirement],
    order_id: Optional[UUID] = None,
    policy: Optional[str] = None,
    conn: Any = None,
    performed_by: str = "System",
) -> List[ConsumptionOutcome]:
    """
    Decrements inventory for every requirement in a single call.

    Each decrement is individually atomic (row lock + guard in the ledger). Under the
    strict policy every requirement is checked first and one OrderShortage listing all
    short or missing ingredients is raised before anything is written. Under the lenient
    policy short or unknown ingredients are logged, left untouched and reported as not
    consumed.
    """
    policy = (policy or STOCK_SHORTAGE_POLICY).lower()
    if policy not in POLICIES:
        raise ValidationError(f"Unknown stock shortage policy '{policy}'.", details={"policy": policy})
    if conn is None:
        async with in_transaction() as new_conn:
            return await consume(requirements, order_id, policy, new_conn, performed_by)

    # Lock rows in a stable order so two orders sharing ingredients cannot deadlock
    requirements = sorted(requirements, key=lambda r: str(r.inventory_item_id))

    if policy == STRICT:
        shortages = await _check_all(requirements, conn)
        if shortages:
            log.warning(f"Order {order_id}: rejecting, {len(shortages)} ingredient(s) short or missing")
            raise OrderShortage(shortages)

    outcomes = []
    for req in requirements:
        names = ", ".join(req.menu_item_names)
        context = TransactionContext(
            performed_by=performed_by,
            notes=f"Used in order #{order_id} for menu items: {names}" if order_id else f"Used for menu items: {names}",
            menu_item_id=req.menu_item_id,
            order_id=order_id,
        )
        try:
            result = await ledger.adjust_quantity(
                req.inventory_item_id, -req.quantity, TransactionType.USAGE, context, conn=conn
            )
        except (InsufficientStock, NotFound) as e:
            if policy == STRICT:
                raise
            log.warning(f"Order {order_id}: skipping ingredient {req.inventory_item_id} ({e.message})")
            outcomes.append(ConsumptionOutcome(
                inventory_item_id=req.inventory_item_id,
                requested=req.quantity,
                consumed=False,
                menu_item_ids=req.menu_item_ids,
                reason=e.message,
            ))
            continue

        outcomes.append(ConsumptionOutcome(
            inventory_item_id=req.inventory_item_id,
            requested=req.quantity,
            consumed=True,
            new_quantity=result.item.quantity,
            menu_item_ids=req.menu_item_ids,
        ))
    return outcomes
