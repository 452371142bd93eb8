from __future__ import annotations

from typing import Iterable

from oms.domain.errors import IllegalTransition, InvalidStatusValue
from oms.domain.orders.aggregates import OrderStatus


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def parse_status(value: str) -> OrderStatus:
    normalized = (value or "").strip().upper()
    try:
        return OrderStatus(normalized)
    except ValueError as exc:
        raise InvalidStatusValue(value) from exc


def allowed_targets(current: OrderStatus) -> frozenset[OrderStatus]:
    return ALLOWED_TRANSITIONS[current]


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def transition(current: OrderStatus, target: OrderStatus) -> OrderStatus:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransition(current, target)
    return target


def seller_owns_any(seller_id: int, product_owner_ids: Iterable[int]) -> bool:
    return seller_id in set(product_owner_ids)
