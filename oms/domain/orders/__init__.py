from oms.domain.orders.aggregates import Order, OrderLine, OrderStatus
from oms.domain.orders.commands import OrderItemRequest, OrderRequest, place_order

__all__ = [
    "Order",
    "OrderItemRequest",
    "OrderLine",
    "OrderRequest",
    "OrderStatus",
    "place_order",
]
