from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass
class Order:
    order_id: int | None
    user_id: int
    shipping_address_id: int | None
    status: OrderStatus
    created_at: datetime
    lines: list[OrderLine] = field(default_factory=list)
    # Fixed when the order is placed; later edits never recompute it.
    total_cents: int = 0

    @classmethod
    def place(
        cls,
        user_id: int,
        shipping_address_id: int | None,
        lines: list[OrderLine],
        created_at: datetime,
    ) -> "Order":
        return cls(
            order_id=None,
            user_id=user_id,
            shipping_address_id=shipping_address_id,
            status=OrderStatus.PENDING,
            created_at=created_at,
            lines=list(lines),
            total_cents=sum(line.line_total_cents for line in lines),
        )

    @property
    def product_ids(self) -> set[int]:
        return {line.product_id for line in self.lines}

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "shipping_address_id": self.shipping_address_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
            "total_cents": self.total_cents,
            "lines": [
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price_cents": line.unit_price_cents,
                }
                for line in self.lines
            ],
        }
