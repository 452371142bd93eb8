from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from oms.domain.errors import DataIntegrityError
from oms.domain.orders.aggregates import Order, OrderLine, OrderStatus
from oms.persistence.models import (
    CartItemModel,
    CartModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    SellerModel,
    ShippingAddressModel,
    UserModel,
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every timestamp is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: int) -> UserModel | None:
        return self.session.get(UserModel, user_id)

    def find_by_identity(self, subject: str) -> UserModel | None:
        stmt = select(UserModel).where(func.lower(UserModel.email) == subject.lower())
        return self.session.scalar(stmt)


class ShippingAddressStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, address_id: int) -> ShippingAddressModel | None:
        return self.session.get(ShippingAddressModel, address_id)


class SellerStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_user_id(self, user_id: int) -> SellerModel | None:
        return self.session.scalar(select(SellerModel).where(SellerModel.user_id == user_id))


class ProductStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, product_id: int) -> ProductModel | None:
        return self.session.get(ProductModel, product_id)

    def find_by_id_for_update(self, product_id: int) -> ProductModel | None:
        # populate_existing so a row already in the identity map is re-read
        # under the lock instead of trusting a stale stock value.
        stmt = (
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.scalar(stmt)

    def lock_in_id_order(self, product_ids: Iterable[int]) -> list[ProductModel]:
        # One ascending lock order for every transaction, so two orders that
        # share products wait on each other instead of deadlocking.
        ids = sorted(set(product_ids))
        if not ids:
            return []
        stmt = (
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.session.scalars(stmt).all())

    def save(self, product: ProductModel) -> ProductModel:
        self.session.add(product)
        self.session.flush()
        return product

    def owner_ids(self, product_ids: Iterable[int]) -> set[int]:
        ids = list(product_ids)
        if not ids:
            return set()
        stmt = select(ProductModel.seller_id).where(ProductModel.id.in_(ids)).distinct()
        return set(self.session.scalars(stmt).all())


class CartStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_user_id(self, user_id: int) -> CartModel | None:
        return self.session.scalar(select(CartModel).where(CartModel.user_id == user_id))

    def delete_all_items(self, cart_id: int) -> int:
        result = self.session.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return int(result.rowcount or 0)


class OrderStore:
    """Persists orders and hands them out as detached ``Order`` snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def _lines_for(self, order_ids: list[int]) -> dict[int, list[OrderLine]]:
        grouped: dict[int, list[OrderLine]] = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return grouped
        stmt = (
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_(order_ids))
            .order_by(OrderItemModel.id.asc())
        )
        for row in self.session.scalars(stmt).all():
            grouped[row.order_id].append(
                OrderLine(
                    product_id=row.product_id,
                    quantity=row.quantity,
                    unit_price_cents=row.unit_price_cents,
                )
            )
        return grouped

    @staticmethod
    def _to_order(row: OrderModel, lines: list[OrderLine]) -> Order:
        return Order(
            order_id=row.id,
            user_id=row.user_id,
            shipping_address_id=row.shipping_address_id,
            status=OrderStatus(row.status),
            created_at=_as_utc(row.created_at),
            lines=lines,
            total_cents=row.total_cents,
        )

    def save(self, order: Order) -> Order:
        row = OrderModel(
            user_id=order.user_id,
            shipping_address_id=order.shipping_address_id,
            total_cents=order.total_cents,
            status=order.status.value,
            created_at=order.created_at,
            updated_at=order.created_at,
        )
        self.session.add(row)
        self.session.flush()
        for line in order.lines:
            self.session.add(
                OrderItemModel(
                    order_id=row.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                )
            )
        self.session.flush()
        order.order_id = row.id
        return order

    def find_by_id(self, order_id: int) -> Order | None:
        row = self.session.get(OrderModel, order_id)
        if row is None:
            return None
        return self._to_order(row, self._lines_for([row.id])[row.id])

    def find_by_id_for_update(self, order_id: int) -> Order | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = self.session.scalar(stmt)
        if row is None:
            return None
        return self._to_order(row, self._lines_for([row.id])[row.id])

    def find_by_user_id(self, user_id: int) -> list[Order]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
        )
        rows = list(self.session.scalars(stmt).all())
        lines = self._lines_for([row.id for row in rows])
        return [self._to_order(row, lines[row.id]) for row in rows]

    def set_status(self, order: Order, status: OrderStatus, updated_at: datetime) -> Order:
        row = self.session.get(OrderModel, order.order_id)
        if row is None:
            raise DataIntegrityError(f"order row vanished: {order.order_id}")
        row.status = status.value
        row.updated_at = updated_at
        self.session.flush()
        order.status = status
        return order

    def delete(self, order: Order) -> None:
        self.session.execute(delete(OrderItemModel).where(OrderItemModel.order_id == order.order_id))
        self.session.execute(delete(OrderModel).where(OrderModel.id == order.order_id))
        self.session.flush()
