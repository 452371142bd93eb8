from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

import oms.persistence.pg as pg
from oms.core.security import Identity
from oms.demo.seed import (
    add_to_cart,
    create_address,
    create_product,
    create_seller,
    create_user,
)
from oms.domain.orders.service import OrderLifecycleService
from oms.persistence.models import Base, CartItemModel, CartModel, OrderItemModel, OrderModel, ProductModel


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    engine = pg.create_engine_from_url(f"sqlite+pysqlite:///{test_db_path}")
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    yield
    with configure_test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def service() -> OrderLifecycleService:
    return OrderLifecycleService()


@pytest.fixture()
def shop():
    """Two buyers, two sellers and three products.

    ``widget`` (stock 5, 1000 cents) and ``gadget`` (stock 10, 250 cents)
    belong to ``seller``; ``gizmo`` (stock 3, 700 cents) belongs to
    ``rival``. The buyer's cart holds one widget.
    """
    with pg.session_scope() as s:
        buyer = create_user(s, "buyer@example.com", "Buyer")
        address = create_address(s, buyer)
        other = create_user(s, "other@example.com", "Other Buyer")
        other_address = create_address(s, other, line1="9 Elm St")
        seller_user = create_user(s, "seller@example.com", "Seller")
        seller = create_seller(s, seller_user, "Seller Co")
        rival_user = create_user(s, "rival@example.com", "Rival")
        rival = create_seller(s, rival_user, "Rival Co")
        widget = create_product(s, seller, "Widget", price_cents=1000, stock=5)
        gadget = create_product(s, seller, "Gadget", price_cents=250, stock=10)
        gizmo = create_product(s, rival, "Gizmo", price_cents=700, stock=3)
        add_to_cart(s, buyer, widget, 1)
        add_to_cart(s, buyer, gadget, 4)

        return SimpleNamespace(
            buyer_id=buyer.id,
            buyer=Identity(subject=buyer.email),
            address_id=address.id,
            other_id=other.id,
            other=Identity(subject=other.email),
            other_address_id=other_address.id,
            seller_id=seller.id,
            seller=Identity(subject=seller_user.email),
            rival_id=rival.id,
            rival=Identity(subject=rival_user.email),
            widget_id=widget.id,
            gadget_id=gadget.id,
            gizmo_id=gizmo.id,
        )


@pytest.fixture()
def stock_of():
    def _stock_of(product_id: int) -> int:
        with pg.session_scope() as s:
            return s.scalar(select(ProductModel.stock).where(ProductModel.id == product_id))

    return _stock_of


@pytest.fixture()
def row_counts():
    def _row_counts(user_id: int | None = None) -> dict[str, int]:
        with pg.session_scope() as s:
            counts = {
                "orders": s.scalar(select(func.count()).select_from(OrderModel)),
                "order_items": s.scalar(select(func.count()).select_from(OrderItemModel)),
            }
            if user_id is not None:
                counts["cart_items"] = s.scalar(
                    select(func.count())
                    .select_from(CartItemModel)
                    .join(CartModel, CartModel.id == CartItemModel.cart_id)
                    .where(CartModel.user_id == user_id)
                )
            return counts

    return _row_counts
