from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from oms.core.security import Identity
from oms.core.utils import now_utc
from oms.domain.errors import NotAuthorized, NotFound
from oms.domain.orders.aggregates import Order
from oms.domain.orders.builder import OrderBuilder
from oms.domain.orders.commands import OrderRequest
from oms.domain.orders.status import parse_status, seller_owns_any, transition
from oms.persistence import pg
from oms.persistence.stores import OrderStore, ProductStore, SellerStore, UserStore

logger = logging.getLogger(__name__)

TransactionFactory = Callable[[], AbstractContextManager[Session]]


def _default_transaction() -> AbstractContextManager[Session]:
    # Looked up at call time so a rebound pg.SessionLocal is honoured.
    return pg.session_scope()


class OrderLifecycleService:
    """Create, read, update and delete orders, one transaction per call.

    Each public method opens its own transaction through ``transaction``; it
    commits when the method returns and rolls back when it raises, so a
    failed call leaves no trace in the database.
    """

    def __init__(
        self,
        transaction: TransactionFactory = _default_transaction,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.transaction = transaction
        self.clock = clock

    def create_order(self, identity: Identity, request: OrderRequest) -> Order:
        with self.transaction() as session:
            order = OrderBuilder(session, clock=self.clock).build(identity, request)
        logger.info("order created: order_id=%s user_id=%s", order.order_id, order.user_id)
        return order

    def get_order(self, order_id: int) -> Order:
        with self.transaction() as session:
            order = OrderStore(session).find_by_id(order_id)
        if order is None:
            raise NotFound("order", order_id)
        return order

    def list_orders_for_user(self, user_id: int) -> list[Order]:
        with self.transaction() as session:
            return OrderStore(session).find_by_user_id(user_id)

    def update_order_status(self, identity: Identity, order_id: int, target_status: str) -> Order:
        with self.transaction() as session:
            user = UserStore(session).find_by_identity(identity.subject)
            seller = SellerStore(session).find_by_user_id(user.id) if user is not None else None
            if seller is None:
                raise NotFound("seller", identity.subject)

            orders = OrderStore(session)
            order = orders.find_by_id_for_update(order_id)
            if order is None:
                raise NotFound("order", order_id)

            owner_ids = ProductStore(session).owner_ids(order.product_ids)
            if not seller_owns_any(seller.id, owner_ids):
                logger.warning(
                    "status update rejected: seller_id=%s does not own order_id=%s",
                    seller.id,
                    order_id,
                )
                raise NotAuthorized(
                    f"seller {seller.id} is not authorized to update this order",
                    seller_id=seller.id,
                    order_id=order_id,
                )

            previous = order.status
            target = transition(previous, parse_status(target_status))
            orders.set_status(order, target, updated_at=self.clock())

        logger.info(
            "order status changed: order_id=%s seller_id=%s %s -> %s",
            order_id,
            seller.id,
            previous.value,
            target.value,
        )
        return order

    def cancel_order(self, order_id: int) -> None:
        """Hard-delete an order and its line items.

        Not the same as moving an order to ``CANCELLED``: this ignores the
        status table and does not put reserved stock back.
        """
        with self.transaction() as session:
            orders = OrderStore(session)
            order = orders.find_by_id_for_update(order_id)
            if order is None:
                raise NotFound("order", order_id)
            orders.delete(order)
        logger.info("order deleted: order_id=%s status_at_delete=%s", order_id, order.status.value)
