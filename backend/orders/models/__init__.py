from .users import User, SessionToken
from .orders import Order, OrderItem, OrderStatus
from .audit import AuditEvent

__all__ = [
    'User', 'SessionToken',
    'Order', 'OrderItem', 'OrderStatus',
    'AuditEvent',
]
