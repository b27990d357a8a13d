from __future__ import annotations

import enum
from decimal import Decimal

from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.ext.orderinglist import ordering_list

from ..extensions import db
from ..errors import ValidationError, InvalidStateError
from ..money import ZERO, round_money, to_decimal
from .users import new_id
from orders.time_utils import utcnow


MAX_NAME_LENGTH = 100
# Upper bound of a 32-bit signed INTEGER column
MAX_QUANTITY = 2_147_483_647


class OrderStatus(str, enum.Enum):
    """
    Order lifecycle.

        Draft -> Submitted -> Completed
        Draft | Submitted -> Cancelled

    Completed and Cancelled are terminal.
    """
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class OrderItem(db.Model):
    """
    Line item on an order.

    Every field is validated on construction and on each setter. The unit
    price is stored rounded to 2 places. line_total is always derived.
    Items are created and removed only through Order.add_item / remove_item.
    """
    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    _name = db.Column("name", db.String(256), nullable=False)
    _quantity = db.Column("quantity", db.Integer, nullable=False)
    _unit_price = db.Column("unit_price", db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True)

    order = db.relationship("Order", back_populates="_items")

    def __init__(self, name: str, quantity: int, unit_price):
        super().__init__()
        self.id = new_id()
        self.created_at = utcnow()
        self.name = name
        self.quantity = quantity
        self.unit_price = unit_price

    @hybrid_property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Name required.", details={"field": "name"})
        if len(value.strip()) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name cannot exceed {MAX_NAME_LENGTH} characters.", details={"field": "name"}
            )
        self._name = value.strip()
        self.touch()

    @hybrid_property
    def quantity(self) -> int:
        return self._quantity

    @quantity.setter
    def quantity(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("Quantity must be an integer.", details={"field": "quantity"})
        if value <= 0:
            raise ValidationError("Quantity must be > 0.", details={"field": "quantity"})
        if value > MAX_QUANTITY:
            raise ValidationError(f"Quantity cannot exceed {MAX_QUANTITY}.", details={"field": "quantity"})
        self._quantity = value
        self.touch()

    @hybrid_property
    def unit_price(self) -> Decimal:
        return round_money(self._unit_price)

    @unit_price.setter
    def unit_price(self, value) -> None:
        try:
            price = to_decimal(value)
        except TypeError:
            raise ValidationError("Unit price must be a number.", details={"field": "unitPrice"})
        if not price.is_finite():
            raise ValidationError("Unit price must be a number.", details={"field": "unitPrice"})
        if price < 0:
            raise ValidationError("Unit price must be >= 0.", details={"field": "unitPrice"})
        self._unit_price = round_money(price)
        self.touch()

    @unit_price.expression
    def unit_price(cls):
        return cls._unit_price

    @property
    def line_total(self) -> Decimal:
        return round_money(self.quantity * self.unit_price)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id} name={self._name!r} qty={self._quantity}>"


class Order(db.Model):
    """
    Order aggregate: the order row plus the items it exclusively owns.

    Invariants held here, not at the boundary:
    - total == round(sum(item.line_total), 2) after every item mutation
    - items can only change while the order is Draft
    - status moves only along the OrderStatus transitions
    - user_id never changes after construction

    status, total and user_id are read-only properties over private columns;
    the methods below are the only way to change them.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    _user_id = db.Column("user_id", db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    _status = db.Column("status", db.String(16), nullable=False, default=OrderStatus.DRAFT.value, index=True)
    _total = db.Column("total", db.Numeric(12, 2), nullable=False, default=ZERO)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True)

    _items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    user = db.relationship("User", back_populates="orders")

    def __init__(self, user_id: str):
        super().__init__()
        if not user_id:
            raise ValidationError("UserId required.", details={"field": "userId"})
        self.id = new_id()
        self._user_id = user_id
        self._status = OrderStatus.DRAFT.value
        self._total = ZERO
        self.created_at = utcnow()

    # -----------------------
    # Read-only state
    # -----------------------

    @hybrid_property
    def user_id(self) -> str:
        return self._user_id

    @hybrid_property
    def status(self) -> OrderStatus:
        return OrderStatus(self._status)

    @status.expression
    def status(cls):
        return cls._status

    @hybrid_property
    def total(self) -> Decimal:
        return round_money(self._total)

    @total.expression
    def total(cls):
        return cls._total

    @property
    def items(self) -> tuple[OrderItem, ...]:
        return tuple(self._items)

    # -----------------------
    # Item management
    # -----------------------

    def add_item(self, item: OrderItem) -> OrderItem:
        if item is None:
            raise ValidationError("Item required.")
        self._ensure_draft("Only Draft orders can be modified.")

        item.order_id = self.id
        self._items.append(item)
        self._recalculate_total()
        return item

    def remove_item(self, item_id: str) -> OrderItem | None:
        """Remove an item by id. An unknown id is a no-op, not an error."""
        self._ensure_draft("Only Draft orders can be modified.")

        item = next((i for i in self._items if i.id == item_id), None)
        if item is None:
            return None
        self._items.remove(item)
        self._recalculate_total()
        return item

    def _recalculate_total(self) -> None:
        self._total = round_money(sum((i.line_total for i in self._items), ZERO))
        self.touch()

    # -----------------------
    # Status transitions
    # -----------------------

    def submit(self) -> None:
        if self.status is not OrderStatus.DRAFT:
            raise InvalidStateError(
                "Only draft orders can be submitted.", details={"status": self._status}
            )
        self._status = OrderStatus.SUBMITTED.value
        self.touch()

    def complete(self) -> None:
        if self.status is not OrderStatus.SUBMITTED:
            raise InvalidStateError(
                "Only submitted orders can be completed.", details={"status": self._status}
            )
        self._status = OrderStatus.COMPLETED.value
        self.touch()

    def cancel(self) -> None:
        # Re-cancelling a Cancelled order is accepted (idempotent).
        if self.status is OrderStatus.COMPLETED:
            raise InvalidStateError(
                "Completed orders cannot be cancelled.", details={"status": self._status}
            )
        self._status = OrderStatus.CANCELLED.value
        self.touch()

    # -----------------------
    # Utility
    # -----------------------

    def _ensure_draft(self, message: str) -> None:
        if self.status is not OrderStatus.DRAFT:
            raise InvalidStateError(message, details={"status": self._status})

    def touch(self) -> None:
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self._status} total={self._total}>"
