from .base import Page, StoreError, NotFoundError, ConcurrencyConflictError
from .customers import CustomerRepository
from .products import ProductRepository
from .orders import OrderRepository

__all__ = [
    'Page', 'StoreError', 'NotFoundError', 'ConcurrencyConflictError',
    'CustomerRepository', 'ProductRepository', 'OrderRepository',
]
