from .auth import User, SessionToken, ROLE_ADMINISTRATOR, ROLE_USER, ROLES
from .customers import Customer
from .products import Product
from .orders import Order, OrderDetail

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMINISTRATOR', 'ROLE_USER', 'ROLES',
    'Customer',
    'Product',
    'Order', 'OrderDetail',
]
