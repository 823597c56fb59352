from typing import Any, Dict, List, Optional


class CafeError(Exception):
    """Base class for business errors surfaced to API callers."""
    status_code = 500
    code = "server_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(CafeError):
    """Missing or malformed input."""
    status_code = 400
    code = "validation_error"


class NotFound(CafeError):
    status_code = 404
    code = "not_found"


class InsufficientStock(CafeError):
    """A usage/waste/adjustment would drive an item's quantity below zero."""
    status_code = 400
    code = "insufficient_stock"

    def __init__(self, item_id, item_name: str, available, requested):
        super().__init__(
            f"Insufficient stock for '{item_name}'. Requested: {requested}, Available: {available}",
            details={
                "inventory_item_id": str(item_id),
                "name": item_name,
                "available": str(available),
                "requested": str(requested),
            },
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested


class OrderShortage(InsufficientStock):
    """An order needs more than is on hand; `details` lists every short or missing ingredient."""

    def __init__(self, shortages: List[Dict[str, Any]]):
        CafeError.__init__(self, "Insufficient inventory", details=shortages)
        self.shortages = shortages
        self.item_id = shortages[0]["inventory_item_id"] if shortages else None
        self.available = None
        self.requested = None


class InvalidStateTransition(CafeError):
    status_code = 400
    code = "invalid_state"


class TransientStoreError(CafeError):
    """Raised once connection-level retries against the database are exhausted."""
    status_code = 500
    code = "store_unavailable"
