# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Service - lifecycle orchestration for the Order aggregate

STATE MACHINE (enforced by the Order entity):
    Draft -> Submitted -> Completed
    Draft | Submitted -> Cancelled

RULES:
1. Items can only be added/removed while the order is Draft
2. Completed is terminal: it cannot be cancelled
3. Orders are only visible to their owner. A missing order and another
   user's order look the same: the service returns None for both
4. Every mutation is read-modify-write: load aggregate, mutate in memory,
   commit, THEN append the audit event (see audit_service)

No optimistic version column: two concurrent requests against the same
order can race and the last commit wins.
"""

from __future__ import annotations

from ..errors import InvalidStateError, NotFoundError
from ..models import Order, OrderItem, OrderStatus
from ..repositories.ports import AuditLog, OrderRepository, UserRepository
from .audit_service import append_after_commit, build_event
from .dto import AddItemRequest, OrderView, PagedResult

DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "-createdAtUtc"

SORT_KEYS = {
    "createdatutc": lambda v: v.created_at,
    "total": lambda v: v.total,
    "status": lambda v: v.status,
}


def parse_sort(sort: str | None) -> tuple[str, bool]:
    """'-total' -> ('total', True). Unknown fields fall back to createdatutc."""
    if not sort or not sort.strip():
        sort = DEFAULT_SORT
    sort = sort.strip()
    descending = sort.startswith("-")
    field = sort.lstrip("-").lower()
    if field not in SORT_KEYS:
        field = "createdatutc"
    return field, descending


class OrderService:
    def __init__(self, orders: OrderRepository, users: UserRepository, audit: AuditLog):
        self.orders = orders
        self.users = users
        self.audit = audit

    # ---------- reads ----------

    def _load_owned(self, current_user_id: str, order_id: str) -> Order | None:
        order = self.orders.get_by_id(order_id)
        if order is None or order.user_id != current_user_id:
            return None
        return order

    def get(self, current_user_id: str, order_id: str) -> OrderView | None:
        order = self._load_owned(current_user_id, order_id)
        return OrderView.from_order(order) if order else None

    def list_for_user(self, user_id: str) -> list[OrderView]:
        return [OrderView.from_order(o) for o in self.orders.list_by_user(user_id)]

    def page_for_user(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str | None = DEFAULT_SORT,
        status: str | None = None,
    ) -> PagedResult[OrderView]:
        """
        Filter, sort and slice the caller's orders.

        page <= 0 becomes 1 and page_size <= 0 becomes the default.
        total_count is counted after filtering, before slicing. The status filter
        is case-insensitive and an unknown status matches nothing.
        """
        if page <= 0:
            page = 1
        if page_size <= 0:
            page_size = DEFAULT_PAGE_SIZE

        views = self.list_for_user(user_id)

        if status and status.strip():
            wanted = status.strip().lower()
            views = [v for v in views if v.status.lower() == wanted]

        field, descending = parse_sort(sort)
        views = sorted(views, key=SORT_KEYS[field], reverse=descending)

        start = (page - 1) * page_size
        return PagedResult(
            items=views[start:start + page_size],
            page=page,
            page_size=page_size,
            total_count=len(views),
        )

    # ---------- creation ----------

    def create_for_user(self, user_id: str) -> OrderView:
        """
        Create a Draft order owned by user_id.

        Raises NotFoundError if the user does not exist.
        """
        if self.users.get_by_id(user_id) is None:
            raise NotFoundError("User not found.", details={"userId": user_id})

        order = Order(user_id)
        self.orders.add(order)
        self.orders.save()

        view = OrderView.from_order(order)
        event = build_event("OrderCreated", user_id=user_id, order_id=order.id, details={"orderId": order.id})
        return append_after_commit(self.audit, event, view)

    # ---------- items ----------

    def add_item(self, current_user_id: str, order_id: str, req: AddItemRequest) -> OrderView | None:
        order = self._load_owned(current_user_id, order_id)
        if order is None:
            return None

        if order.status is not OrderStatus.DRAFT:
            raise InvalidStateError(
                "You can only add items to a Draft order.", details={"status": order.status.value}
            )

        item = OrderItem(req.name, req.quantity, req.unit_price)
        order.add_item(item)
        self.orders.add_item(order, item)
        self.orders.save()

        view = OrderView.from_order(order)
        event = build_event(
            "ItemAdded",
            user_id=current_user_id,
            order_id=order_id,
            details={
                "itemId": item.id,
                "name": item.name,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "newTotal": view.total,
            },
        )
        return append_after_commit(self.audit, event, view)

    def remove_item(self, current_user_id: str, order_id: str, item_id: str) -> OrderView | None:
        order = self._load_owned(current_user_id, order_id)
        if order is None:
            return None

        if order.status is not OrderStatus.DRAFT:
            raise InvalidStateError(
                "You can only remove items from a Draft order.", details={"status": order.status.value}
            )

        removed = order.remove_item(item_id)
        self.orders.save()

        view = OrderView.from_order(order)
        event = build_event(
            "ItemRemoved",
            user_id=current_user_id,
            order_id=order_id,
            details={"itemId": item_id, "removed": removed is not None, "newTotal": view.total},
        )
        return append_after_commit(self.audit, event, view)

    # ---------- status transitions ----------

    def submit(self, current_user_id: str, order_id: str) -> OrderView | None:
        order = self._load_owned(current_user_id, order_id)
        if order is None:
            return None

        old_status = order.status.value
        order.submit()
        self.orders.save()

        view = OrderView.from_order(order)
        event = build_event(
            "OrderSubmitted",
            user_id=current_user_id,
            order_id=order_id,
            details={
                "oldStatus": old_status,
                "newStatus": view.status,
                "items": len(view.items),
                "total": view.total,
            },
        )
        return append_after_commit(self.audit, event, view)

    def complete(self, current_user_id: str, order_id: str) -> OrderView | None:
        return self._transition(current_user_id, order_id, Order.complete, "OrderCompleted")

    def cancel(self, current_user_id: str, order_id: str) -> OrderView | None:
        return self._transition(current_user_id, order_id, Order.cancel, "OrderCancelled")

    def _transition(self, current_user_id: str, order_id: str, move, action: str) -> OrderView | None:
        order = self._load_owned(current_user_id, order_id)
        if order is None:
            return None

        old_status = order.status.value
        move(order)
        self.orders.save()

        view = OrderView.from_order(order)
        event = build_event(
            action,
            user_id=current_user_id,
            order_id=order_id,
            details={"oldStatus": old_status, "newStatus": view.status},
        )
        return append_after_commit(self.audit, event, view)
