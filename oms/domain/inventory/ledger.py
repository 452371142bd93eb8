from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from oms.domain.errors import InsufficientStock, NotFound
from oms.persistence.models import ProductModel
from oms.persistence.stores import ProductStore

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Check-and-decrement of per-product stock.

    The product row is read under a row lock (``SELECT ... FOR UPDATE``), so
    two reservations against one product inside concurrent transactions are
    applied one after the other. The decrement becomes durable only when the
    surrounding transaction commits.
    """

    def __init__(self, session: Session, products: ProductStore | None = None):
        self.session = session
        self.products = products or ProductStore(session)

    def lock(self, product_ids: Iterable[int]) -> None:
        """Lock every product row a multi-line reservation will touch, lowest id first."""
        self.products.lock_in_id_order(product_ids)

    def reserve(self, product_id: int, quantity: int) -> ProductModel:
        if quantity <= 0:
            raise ValueError(f"reservation quantity must be positive, got {quantity}")

        product = self.products.find_by_id_for_update(product_id)
        if product is None:
            raise NotFound("product", product_id)
        if product.stock < quantity:
            logger.warning(
                "stock reservation rejected: product_id=%s requested=%s available=%s",
                product_id,
                quantity,
                product.stock,
            )
            raise InsufficientStock(
                product_id=product.id,
                product_name=product.name,
                requested=quantity,
                available=product.stock,
            )

        product.stock -= quantity
        self.products.save(product)
        logger.debug("reserved %s of product_id=%s, remaining=%s", quantity, product_id, product.stock)
        return product

    def available(self, product_id: int) -> int:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFound("product", product_id)
        return product.stock
