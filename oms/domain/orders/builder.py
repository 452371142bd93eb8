from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from oms.core.security import Identity
from oms.core.utils import now_utc
from oms.domain.errors import DataIntegrityError, NotAuthorized, NotFound
from oms.domain.inventory.ledger import InventoryLedger
from oms.domain.orders.aggregates import Order, OrderLine
from oms.domain.orders.commands import OrderRequest
from oms.persistence.stores import CartStore, OrderStore, ShippingAddressStore, UserStore

logger = logging.getLogger(__name__)


class OrderBuilder:
    """Turns an ``OrderRequest`` into a persisted order inside one session.

    Every step runs against the caller's session; nothing is committed here.
    If any step raises, the caller's transaction rolls back and takes the
    stock decrements already made with it.
    """

    def __init__(
        self,
        session: Session,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.session = session
        self.clock = clock
        self.users = UserStore(session)
        self.addresses = ShippingAddressStore(session)
        self.carts = CartStore(session)
        self.orders = OrderStore(session)
        self.inventory = InventoryLedger(session)

    def _authorize(self, identity: Identity, request: OrderRequest) -> None:
        requester = self.users.find_by_identity(identity.subject)
        if requester is None:
            raise NotFound("user", identity.subject)
        if requester.id != request.user_id:
            logger.warning(
                "order placement rejected: identity=%s requested user_id=%s",
                identity.subject,
                request.user_id,
            )
            raise NotAuthorized(
                "you are not allowed to place an order for another user",
                user_id=request.user_id,
            )

    def _resolve_address(self, user_id: int, address_id: int | None) -> int | None:
        if address_id is None:
            return None
        address = self.addresses.find_by_id(address_id)
        if address is None or address.user_id != user_id:
            raise NotFound("shipping address", address_id)
        return address.id

    def build(self, identity: Identity, request: OrderRequest) -> Order:
        self._authorize(identity, request)

        user = self.users.find_by_id(request.user_id)
        if user is None:
            raise NotFound("user", request.user_id)

        address_id = self._resolve_address(user.id, request.shipping_address_id)

        self.inventory.lock(item.product_id for item in request.items)
        lines: list[OrderLine] = []
        for item in request.items:
            product = self.inventory.reserve(item.product_id, item.quantity)
            lines.append(
                OrderLine(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price_cents=product.price_cents,
                )
            )

        order = self.orders.save(Order.place(user.id, address_id, lines, created_at=self.clock()))

        cart = self.carts.find_by_user_id(user.id)
        if cart is None:
            raise DataIntegrityError(f"cart not found for user id: {user.id}", user_id=user.id)
        cleared = self.carts.delete_all_items(cart.id)

        logger.debug(
            "order built: order_id=%s user_id=%s lines=%s total_cents=%s cart_items_cleared=%s",
            order.order_id,
            user.id,
            len(lines),
            order.total_cents,
            cleared,
        )
        return order
