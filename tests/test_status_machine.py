from __future__ import annotations

import itertools

import pytest

from oms.domain.errors import ErrorKind, IllegalTransition, InvalidStatusValue
from oms.domain.orders.aggregates import OrderStatus
from oms.domain.orders.status import (
    allowed_targets,
    is_terminal,
    parse_status,
    seller_owns_any,
    transition,
)

LEGAL = {
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


@pytest.mark.parametrize("current,target", sorted(itertools.product(OrderStatus, OrderStatus), key=str))
def test_transition_table_is_exact(current, target):
    if (current, target) in LEGAL:
        assert transition(current, target) is target
        return

    with pytest.raises(IllegalTransition) as excinfo:
        transition(current, target)
    assert excinfo.value.current is current
    assert excinfo.value.target is target
    assert excinfo.value.to_dict() == {
        "error": "illegal_transition",
        "detail": f"a {current.value} order cannot move to {target.value}",
        "current": current.value,
        "target": target.value,
    }


def test_terminal_statuses_have_no_targets():
    assert is_terminal(OrderStatus.DELIVERED)
    assert is_terminal(OrderStatus.CANCELLED)
    assert not is_terminal(OrderStatus.SHIPPED)
    assert allowed_targets(OrderStatus.DELIVERED) == frozenset()
    assert allowed_targets(OrderStatus.PENDING) == {OrderStatus.PROCESSING, OrderStatus.CANCELLED}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("PROCESSING", OrderStatus.PROCESSING),
        ("shipped", OrderStatus.SHIPPED),
        (" Delivered ", OrderStatus.DELIVERED),
    ],
)
def test_parse_status_accepts_any_case(raw, expected):
    assert parse_status(raw) is expected


@pytest.mark.parametrize("raw", ["", "LOST", "in transit", "PENDING!"])
def test_parse_status_rejects_unknown_values(raw):
    with pytest.raises(InvalidStatusValue) as excinfo:
        parse_status(raw)
    assert excinfo.value.kind is ErrorKind.INVALID_STATUS_VALUE
    assert excinfo.value.value == raw


def test_seller_ownership_needs_only_one_product():
    assert seller_owns_any(7, [3, 7, 9])
    assert not seller_owns_any(7, [3, 9])
    assert not seller_owns_any(7, [])
