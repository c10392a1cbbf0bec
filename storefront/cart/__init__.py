"""Cart package: line item models, persistence adapters, and the cart store."""
from .models import CartLine, CartTotals
from .service import CartStore
from .storage import CartStorage, KeyValueCartStorage

__all__ = [
    "CartLine",
    "CartTotals",
    "CartStore",
    "CartStorage",
    "KeyValueCartStorage",
]
