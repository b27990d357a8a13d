# Overview: Persistence ports the services depend on; storage adapters implement them.

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import AuditEvent, Order, OrderItem, User


class UserRepository(ABC):
    @abstractmethod
    def get_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Look up by email; implementations compare case-folded values."""

    @abstractmethod
    def add(self, user: User) -> None: ...

    @abstractmethod
    def save(self) -> None:
        """Commit pending changes."""

    @abstractmethod
    def rollback(self) -> None: ...


class OrderRepository(ABC):
    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Load an order together with its items in one read."""

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[Order]:
        """All orders owned by user_id, items loaded, newest first."""

    @abstractmethod
    def add(self, order: Order) -> None: ...

    @abstractmethod
    def add_item(self, order: Order, item: OrderItem) -> None:
        """Register a newly appended child item for insert."""

    @abstractmethod
    def save(self) -> None:
        """Commit pending changes."""


class AuditLog(ABC):
    """Append-only sink for audit events. Never updates or deletes."""

    @abstractmethod
    def append(self, event: AuditEvent) -> AuditEvent: ...
