# Overview: SQLAlchemy adapters for the persistence ports.

from __future__ import annotations

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from ..models import Order, OrderItem, User
from .ports import OrderRepository, UserRepository


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        if not email:
            return None
        return self.session.query(User).filter(User.email == email.strip().lower()).first()

    def add(self, user: User) -> None:
        self.session.add(user)

    def save(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, order_id: str) -> Order | None:
        return (
            self.session.query(Order)
            .options(joinedload(Order._items))
            .filter(Order.id == order_id)
            .first()
        )

    def list_by_user(self, user_id: str) -> list[Order]:
        return (
            self.session.query(Order)
            .options(joinedload(Order._items))
            .filter(Order.user_id == user_id)
            .order_by(desc(Order.created_at), desc(Order.id))
            .all()
        )

    def add(self, order: Order) -> None:
        self.session.add(order)

    def add_item(self, order: Order, item: OrderItem) -> None:
        self.session.add(item)

    def save(self) -> None:
        self.session.commit()
