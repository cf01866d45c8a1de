from .auth import User, ROLE_USER, ROLE_ADMIN, ROLES
from .inventory import Category, Supplier, Product, UNKNOWN_LABEL
from .requests import Request, RequestItem, ProductInvoice, REQUEST_STATUSES
from .storage import StoredFile, FILE_KINDS

__all__ = [
    'User', 'ROLE_USER', 'ROLE_ADMIN', 'ROLES',
    'Category', 'Supplier', 'Product', 'UNKNOWN_LABEL',
    'Request', 'RequestItem', 'ProductInvoice', 'REQUEST_STATUSES',
    'StoredFile', 'FILE_KINDS',
]
