from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from oms.core.utils import now_utc
from oms.persistence.models import (
    CartItemModel,
    CartModel,
    ProductModel,
    SellerModel,
    ShippingAddressModel,
    UserModel,
)

logger = logging.getLogger(__name__)

DEMO_BUYER_EMAIL = "buyer@example.com"
DEMO_SELLER_EMAIL = "seller@example.com"

DEMO_PRODUCTS = [
    {"name": "Espresso beans 1kg", "price_cents": 1899, "stock": 40},
    {"name": "Burr grinder", "price_cents": 12900, "stock": 5},
    {"name": "Milk jug", "price_cents": 1000, "stock": 12},
]


def create_user(session: Session, email: str, full_name: str, with_cart: bool = True) -> UserModel:
    user = UserModel(email=email.lower(), full_name=full_name, created_at=now_utc())
    session.add(user)
    session.flush()
    if with_cart:
        session.add(CartModel(user_id=user.id))
        session.flush()
    return user


def create_seller(session: Session, user: UserModel, display_name: str) -> SellerModel:
    seller = SellerModel(user_id=user.id, display_name=display_name)
    session.add(seller)
    session.flush()
    return seller


def create_product(session: Session, seller: SellerModel, name: str, price_cents: int, stock: int) -> ProductModel:
    product = ProductModel(seller_id=seller.id, name=name, price_cents=price_cents, stock=stock)
    session.add(product)
    session.flush()
    return product


def create_address(session: Session, user: UserModel, line1: str = "1 Main St") -> ShippingAddressModel:
    address = ShippingAddressModel(
        user_id=user.id,
        line1=line1,
        city="Springfield",
        postal_code="12345",
        country="US",
    )
    session.add(address)
    session.flush()
    return address


def add_to_cart(session: Session, user: UserModel, product: ProductModel, quantity: int) -> CartItemModel:
    cart = session.scalar(select(CartModel).where(CartModel.user_id == user.id))
    if cart is None:
        raise ValueError(f"user {user.id} has no cart")
    item = CartItemModel(cart_id=cart.id, product_id=product.id, quantity=quantity)
    session.add(item)
    session.flush()
    return item


def seed_demo_shop(session: Session) -> dict[str, Any]:
    """Create a buyer, a seller and a small catalogue, once.

    Returns the ids a caller needs to place and manage a demo order.
    """
    buyer = session.scalar(select(UserModel).where(UserModel.email == DEMO_BUYER_EMAIL))
    seeded_now = buyer is None
    if seeded_now:
        buyer = create_user(session, DEMO_BUYER_EMAIL, "Demo Buyer")
        create_address(session, buyer)
        seller_user = create_user(session, DEMO_SELLER_EMAIL, "Demo Seller")
        seller = create_seller(session, seller_user, "Demo Roastery")
        products = [create_product(session, seller, **fields) for fields in DEMO_PRODUCTS]
        add_to_cart(session, buyer, products[0], 2)
        logger.info("demo shop seeded: buyer_id=%s seller_id=%s", buyer.id, seller.id)

    seller_user = session.scalar(select(UserModel).where(UserModel.email == DEMO_SELLER_EMAIL))
    seller = session.scalar(select(SellerModel).where(SellerModel.user_id == seller_user.id))
    address = session.scalar(select(ShippingAddressModel).where(ShippingAddressModel.user_id == buyer.id))
    product_ids = list(
        session.scalars(
            select(ProductModel.id).where(ProductModel.seller_id == seller.id).order_by(ProductModel.id.asc())
        ).all()
    )
    return {
        "seeded_now": seeded_now,
        "buyer": {"user_id": buyer.id, "email": buyer.email, "shipping_address_id": address.id},
        "seller": {"user_id": seller_user.id, "email": seller_user.email, "seller_id": seller.id},
        "product_ids": product_ids,
    }
