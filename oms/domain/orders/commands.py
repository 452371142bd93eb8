from __future__ import annotations

from pydantic import BaseModel, Field


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class OrderRequest(BaseModel):
    user_id: int
    shipping_address_id: int | None = None
    items: list[OrderItemRequest] = Field(min_length=1)


def place_order(
    user_id: int,
    items: list[dict],
    shipping_address_id: int | None = None,
) -> OrderRequest:
    return OrderRequest(
        user_id=user_id,
        shipping_address_id=shipping_address_id,
        items=[OrderItemRequest(**item) for item in items],
    )
