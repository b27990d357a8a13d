from .ports import UserRepository, OrderRepository, AuditLog
from .sql_repositories import SQLAlchemyUserRepository, SQLAlchemyOrderRepository

__all__ = [
    'UserRepository', 'OrderRepository', 'AuditLog',
    'SQLAlchemyUserRepository', 'SQLAlchemyOrderRepository',
]
