from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_STATUS_VALUE = "invalid_status_value"
    ILLEGAL_TRANSITION = "illegal_transition"
    DATA_INTEGRITY = "data_integrity"


class OrderError(Exception):
    """Base class for every failure the order core reports.

    ``kind`` lets the calling layer dispatch (status codes, messages) without
    an isinstance ladder; ``to_dict`` gives it a stable payload.
    """

    kind: ErrorKind

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "detail": self.message, **self.details}


class NotFound(OrderError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, key: Any):
        super().__init__(f"{entity} not found: {key}", entity=entity, key=key)
        self.entity = entity
        self.key = key


class NotAuthorized(OrderError):
    kind = ErrorKind.NOT_AUTHORIZED


class InsufficientStock(OrderError):
    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"insufficient stock for product: {product_name}",
            product_id=product_id,
            product_name=product_name,
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStatusValue(OrderError):
    kind = ErrorKind.INVALID_STATUS_VALUE

    def __init__(self, value: str):
        super().__init__(f"invalid order status: {value}", value=value)
        self.value = value


class IllegalTransition(OrderError):
    kind = ErrorKind.ILLEGAL_TRANSITION

    def __init__(self, current: Any, target: Any):
        current_name = getattr(current, "value", current)
        target_name = getattr(target, "value", target)
        super().__init__(
            f"a {current_name} order cannot move to {target_name}",
            current=current_name,
            target=target_name,
        )
        self.current = current
        self.target = target


class DataIntegrityError(OrderError):
    kind = ErrorKind.DATA_INTEGRITY
