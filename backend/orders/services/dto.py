# Overview: Response views shaped from entity state; routes serialize these.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar

from ..models import Order, OrderItem
from orders.time_utils import to_utc_z

T = TypeVar("T")


@dataclass(frozen=True)
class OrderItemView:
    id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @classmethod
    def from_item(cls, item: OrderItem) -> "OrderItemView":
        return cls(
            id=item.id,
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": float(self.unit_price),
            "lineTotal": float(self.line_total),
        }


@dataclass(frozen=True)
class OrderView:
    id: str
    user_id: str
    status: str
    total: Decimal
    created_at: datetime
    updated_at: datetime | None
    items: tuple[OrderItemView, ...] = field(default_factory=tuple)

    @classmethod
    def from_order(cls, order: Order) -> "OrderView":
        return cls(
            id=order.id,
            user_id=order.user_id,
            status=order.status.value,
            total=order.total,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=tuple(OrderItemView.from_item(i) for i in order.items),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "status": self.status,
            "total": float(self.total),
            "createdAtUtc": to_utc_z(self.created_at),
            "updatedAtUtc": to_utc_z(self.updated_at),
            "items": [i.to_dict() for i in self.items],
        }


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total_count: int

    def to_dict(self) -> dict:
        return {
            "items": [i.to_dict() for i in self.items],
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
        }


@dataclass(frozen=True)
class AuthResult:
    access_token: str
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "accessToken": self.access_token,
            "expiresAtUtc": to_utc_z(self.expires_at),
        }


@dataclass(frozen=True)
class AddItemRequest:
    name: str
    quantity: int
    unit_price: Decimal
